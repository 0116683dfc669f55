from schemas.application import (
    APPLICATION_FIELD_KEYS,
    SERVER_OWNED_FIELDS,
    ApplicationCreate,
    ApplicationFields,
    ApplicationUpdate,
    TenantSchema,
)

__all__ = [
    "APPLICATION_FIELD_KEYS",
    "SERVER_OWNED_FIELDS",
    "ApplicationCreate",
    "ApplicationFields",
    "ApplicationUpdate",
    "TenantSchema",
]
