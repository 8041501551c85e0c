"""Domain models for lotscan."""

from enum import Enum


class BarcodeFormat(str, Enum):
    """Detected encoding family of a scanned payload.

    Values match the ``barcode_type`` strings stored on barcode records.
    """

    GS1_128 = "GS1-128"
    QR = "QR"
    EAN = "EAN"
    CODE128 = "CODE128"
    CODE39 = "CODE39"
    DATAMATRIX = "DATAMATRIX"
    UNKNOWN = "UNKNOWN"


class ScanAction(str, Enum):
    """Next step offered to the operator after a scan."""

    CREATE_ITEM = "CREATE_ITEM"
    CREATE_LOT = "CREATE_LOT"
    VIEW_ITEM = "VIEW_ITEM"
    VIEW_LOT = "VIEW_LOT"
    ADD_TO_BATCH = "ADD_TO_BATCH"
    ADJUST_INVENTORY = "ADJUST_INVENTORY"
    PRINT_LABEL = "PRINT_LABEL"
    CREATE_CONTAINER = "CREATE_CONTAINER"
    WEIGH_CONTAINER = "WEIGH_CONTAINER"
    VIEW_DETAILS = "VIEW_DETAILS"
    MOVE_TO_PRODUCTION = "MOVE_TO_PRODUCTION"
    USE_IN_BATCH = "USE_IN_BATCH"
    MOVE_TO_BACKSTOCK = "MOVE_TO_BACKSTOCK"


class ScanError(str, Enum):
    """Error tag surfaced on a scan result."""

    NOT_FOUND = "NOT_FOUND"
    INVALID_FORMAT = "INVALID_FORMAT"
    NETWORK_ERROR = "NETWORK_ERROR"
    PERMISSION_DENIED = "PERMISSION_DENIED"


class LabelType(str, Enum):
    """Kind of entity a generated QR label points at."""

    ITEM = "item"
    LOT = "lot"
    BATCH = "batch"
    CONTAINER = "container"


class ContainerStatus(str, Enum):
    """Container states that change the offered actions.

    Other status values are stored as-is and offer only the common actions.
    """

    ACTIVE = "active"
    BACKSTOCK = "backstock"
