"""
chip_converter.constants
------------------------
Key grammar of the legacy chip config file and identifiers shared by the
record codecs and the certificate library.
"""

import re

SDK_CONFIG = "sdk-config"
REPL_CONFIG = "repl-config"

DEFAULT_CONFIG_PATH = "chip.json"
DEFAULT_JSON_INDENT = 4

# Non-TLV bookkeeping: failsafe markers, group counters, group map, ICD
IGNORED_KEY_PATTERNS = (
    re.compile(r"^g/fs/[cn]$"),
    re.compile(r"^g/gdc$"),
    re.compile(r"^g/gcc$"),
    re.compile(r"^g/gfl$"),
    re.compile(r"^g/icdfl$"),
)

FABRIC_KEY_RE = re.compile(r"^f/([0-9a-fA-F]+)/(.+)$")
KEY_SET_SLOT_RE = re.compile(r"^(0|[1-9][0-9]*)$")

GLOBAL_FABRIC_INDEX_LIST = "g/fidx"
GLOBAL_LAST_KNOWN_GOOD_TIME = "g/lkgt"
GLOBAL_SESSION_RESUMPTION_INDEX = "g/sri"
GLOBAL_SESSION_PREFIX = "g/s/"

FABRIC_NOC = "n"
FABRIC_ICAC = "i"
FABRIC_RCAC = "r"
FABRIC_METADATA = "m"
FABRIC_KEY_SET_PREFIX = "k/"
FABRIC_SESSION_PREFIX = "s/"

IPK_LENGTH = 16
RESUMPTION_ID_LENGTH = 16
SHARED_SECRET_LENGTH = 32
CAT_FIELD_LENGTH = 12
FABRIC_LABEL_MAX = 32

# Certificates: seconds between the Unix epoch and 2000-01-01T00:00:00Z
MATTER_EPOCH_OFFSET = 946684800
EC_PUBLIC_KEY_LENGTH = 65
EC_SIGNATURE_LENGTH = 64
KEY_IDENTIFIER_LENGTH = 20
