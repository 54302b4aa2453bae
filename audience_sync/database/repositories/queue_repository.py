from typing import Any

import psycopg
from psycopg.rows import dict_row

from audience_sync.database.connection import get_connection
from audience_sync.database.models import (
    STATUS_DEAD,
    STATUS_DONE,
    STATUS_PENDING,
    STATUS_PROCESSING,
    QueueMessageRecord,
)
from audience_sync.logging.logger import Log
from audience_sync.processor.messages import encode_message

LOCK_EXPIRED_ERROR = "Visibility timeout expired before the message was completed"


class QueueRepository:
    """Durable message queue stored in the queue_messages table.

    Delivery is at-least-once: a claimed message that is never marked done
    becomes claimable again once its lock is older than the visibility timeout.
    An expired lock counts as a failed attempt, so a message that keeps
    killing its worker is dead-lettered like any other failing message.
    """

    def __init__(
        self,
        max_attempts: int,
        visibility_timeout_seconds: int = 600,
        base64_payloads: bool = False,
    ) -> None:
        self._max_attempts = max_attempts
        self._visibility_timeout_seconds = visibility_timeout_seconds
        self._base64_payloads = base64_payloads

    def enqueue(
        self,
        queue_name: str,
        payload: dict[str, object],
        delay_seconds: int = 0,
    ) -> int:
        """Insert a message, invisible to consumers for delay_seconds."""
        body = encode_message(payload, base64_encoded=self._base64_payloads)
        with get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    INSERT INTO queue_messages (queue_name, payload, status, attempts, visible_at)
                    VALUES (%s, %s, %s, 0, NOW() + make_interval(secs => %s))
                    RETURNING id
                    """,
                    (queue_name, body, STATUS_PENDING, delay_seconds),
                )
                row = cur.fetchone()
            conn.commit()
        if row is None:
            raise RuntimeError(f"Failed to enqueue message on {queue_name}")
        Log.info(f"Enqueued message {row[0]} on {queue_name} (delay {delay_seconds}s)")
        return int(row[0])

    def claim_next_message(
        self,
        conn: psycopg.Connection[Any],
        queue_names: list[str],
    ) -> QueueMessageRecord | None:
        """Claim the oldest visible message using SELECT FOR UPDATE SKIP LOCKED.

        Reclaiming a message with an expired lock increments its attempts.
        """
        self._dead_letter_expired(conn, queue_names)

        with conn.cursor(row_factory=dict_row) as cur:
            cur.execute(
                """
                SELECT id, queue_name, payload, status, attempts
                FROM queue_messages
                WHERE queue_name = ANY(%s)
                  AND attempts < %s
                  AND (
                    (status = %s AND visible_at <= NOW())
                    OR (status = %s
                        AND locked_at < NOW() - make_interval(secs => %s))
                  )
                ORDER BY visible_at, id
                LIMIT 1
                FOR UPDATE SKIP LOCKED
                """,
                (
                    queue_names,
                    self._max_attempts,
                    STATUS_PENDING,
                    STATUS_PROCESSING,
                    self._visibility_timeout_seconds,
                ),
            )
            row = cur.fetchone()

        if row is None:
            conn.commit()
            return None

        attempts = row["attempts"]
        if row["status"] == STATUS_PROCESSING:
            attempts += 1
            Log.warning(
                f"Reclaiming message {row['id']} after expired lock (attempt {attempts + 1})"
            )

        conn.execute(
            """
            UPDATE queue_messages
            SET status = %s, attempts = %s, locked_at = NOW(), updated_at = NOW()
            WHERE id = %s
            """,
            (STATUS_PROCESSING, attempts, row["id"]),
        )
        conn.commit()

        return QueueMessageRecord(
            id=row["id"],
            queue_name=row["queue_name"],
            payload=row["payload"],
            status=STATUS_PROCESSING,
            attempts=attempts,
        )

    def _dead_letter_expired(
        self,
        conn: psycopg.Connection[Any],
        queue_names: list[str],
    ) -> None:
        """Dead-letter expired locks whose lost attempt was the last one allowed."""
        with conn.cursor() as cur:
            cur.execute(
                """
                UPDATE queue_messages
                SET status = %s, attempts = attempts + 1, error_message = %s,
                    locked_at = NULL, updated_at = NOW()
                WHERE queue_name = ANY(%s)
                  AND status = %s
                  AND locked_at < NOW() - make_interval(secs => %s)
                  AND attempts + 1 >= %s
                RETURNING id
                """,
                (
                    STATUS_DEAD,
                    LOCK_EXPIRED_ERROR,
                    queue_names,
                    STATUS_PROCESSING,
                    self._visibility_timeout_seconds,
                    self._max_attempts,
                ),
            )
            dead_ids = [row[0] for row in cur.fetchall()]
        conn.commit()
        for message_id in dead_ids:
            Log.error(f"Message {message_id} dead-lettered after its lock expired")

    def mark_done(self, message_id: int) -> None:
        """Mark a message as successfully processed."""
        with get_connection() as conn:
            conn.execute(
                """
                UPDATE queue_messages
                SET status = %s, locked_at = NULL, updated_at = NOW()
                WHERE id = %s
                """,
                (STATUS_DONE, message_id),
            )
            conn.commit()

    def mark_dead_lettered(self, message_id: int, error: str) -> None:
        """Move a message to the dead-letter state after its last attempt."""
        with get_connection() as conn:
            conn.execute(
                """
                UPDATE queue_messages
                SET status = %s, attempts = attempts + 1, error_message = %s,
                    locked_at = NULL, updated_at = NOW()
                WHERE id = %s
                """,
                (STATUS_DEAD, error, message_id),
            )
            conn.commit()

    def release_for_retry(self, message_id: int, error: str, delay_seconds: int) -> None:
        """Increment attempt count and return the message to pending after a delay."""
        with get_connection() as conn:
            conn.execute(
                """
                UPDATE queue_messages
                SET attempts = attempts + 1, status = %s, error_message = %s,
                    visible_at = NOW() + make_interval(secs => %s),
                    locked_at = NULL, updated_at = NOW()
                WHERE id = %s
                """,
                (STATUS_PENDING, error, delay_seconds, message_id),
            )
            conn.commit()

    def find_by_id(self, message_id: int) -> QueueMessageRecord | None:
        """Find a message by ID. Useful for tests."""
        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    """
                    SELECT id, queue_name, payload, status, attempts, error_message,
                           visible_at, locked_at, created_at, updated_at
                    FROM queue_messages
                    WHERE id = %s
                    """,
                    (message_id,),
                )
                row = cur.fetchone()

        if row is None:
            return None

        return QueueMessageRecord(
            id=row["id"],
            queue_name=row["queue_name"],
            payload=row["payload"],
            status=row["status"],
            attempts=row["attempts"],
            error_message=row["error_message"],
            visible_at=row["visible_at"],
            locked_at=row["locked_at"],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )
