from audience_sync.normalization.hasher import hash_record, hash_records
from audience_sync.normalization.models import AUDIENCE_SCHEMA, CustomerRecord, NormalizedRow

__all__ = ["AUDIENCE_SCHEMA", "CustomerRecord", "NormalizedRow", "hash_record", "hash_records"]
