# ==============================================
# Relations & Bookkeeping Columns
# ==============================================
#
# Every entity is backed by three physical relations:
#
#   {ENTITY}{staging suffix}        → pending, unapproved changes
#   {ENTITY}{authoritative suffix}  → current truth
#   {ENTITY}{history suffix}        → append-only decision log
#
# Besides the declared fields, each relation carries a fixed set of
# bookkeeping columns. These names are the ONLY identifiers besides
# metadata field names that ever reach statement text.
# ==============================================

from enum import Enum

ADDED_BY = "ADDED_BY"
ADDED_DATE_TIME = "ADDED_DATE_TIME"
UPDATED_BY = "UPDATED_BY"
UPDATED_DATE_TIME = "UPDATED_DATE_TIME"
APPROVE_BY = "APPROVE_BY"
APPROVE_DATE_TIME = "APPROVE_DATE_TIME"
REQUEST = "REQUEST"
STATUS = "STATUS"
REJECT_REMARK = "REJECT_REMARK"
RECTIFY_REMARK = "RECTIFY_REMARK"

# Reserved payload keys
BEANS_KEY = "beans"
BEAN_NAME_KEY = "__bean__"


class RelationKind(Enum):
    STAGING = "staging"
    AUTHORITATIVE = "authoritative"
    HISTORY = "history"


BOOKKEEPING_COLUMNS = {
    RelationKind.STAGING: [
        ADDED_BY, ADDED_DATE_TIME, UPDATED_BY, UPDATED_DATE_TIME,
        REQUEST, STATUS, RECTIFY_REMARK,
    ],
    RelationKind.AUTHORITATIVE: [
        ADDED_BY, ADDED_DATE_TIME, UPDATED_BY, UPDATED_DATE_TIME,
        APPROVE_BY, APPROVE_DATE_TIME,
    ],
    RelationKind.HISTORY: [
        ADDED_BY, ADDED_DATE_TIME, UPDATED_BY, UPDATED_DATE_TIME,
        APPROVE_BY, APPROVE_DATE_TIME, REQUEST, STATUS,
        REJECT_REMARK, RECTIFY_REMARK,
    ],
}

# DDL types for bookkeeping columns
BOOKKEEPING_TYPES = {
    ADDED_BY: "VARCHAR(64)",
    UPDATED_BY: "VARCHAR(64)",
    APPROVE_BY: "VARCHAR(64)",
    ADDED_DATE_TIME: "DATETIME",
    UPDATED_DATE_TIME: "DATETIME",
    APPROVE_DATE_TIME: "DATETIME",
    REQUEST: "VARCHAR(16)",
    STATUS: "VARCHAR(16)",
    REJECT_REMARK: "VARCHAR(512)",
    RECTIFY_REMARK: "VARCHAR(512)",
}
