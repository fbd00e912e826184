"""Project-wide constants (protocol prefixes, storage layout, default paths)."""

B_PROTOCOL_ID: str = "19HxigV4QyBv3tHpQVcUEQyq1pzZVdoAut"
BCAT_PROTOCOL_ID: str = "15DHFxWZJT58f9nhyGnsRBqrgwK4W6h4Up"
BCHUNK_PROTOCOL_ID: str = "1ChDHzdd1H4wSjgGMHyndZm6qxEDGjqpJL"

OP_RETURN: int = 106

# Field offsets inside a nulldata output
PROTOCOL_FIELD = "s1"
INFO_FIELD = "s2"
CONTENT_TYPE_FIELD = "s3"
ENCODING_FIELD = "s4"
FILENAME_FIELD = "s5"
FLAG_FIELD = "s6"
PAYLOAD_FIELDS = ("lb2", "b2")
FIRST_CHUNK_INDEX = 7

CATEGORY_B = "b"
CATEGORY_BCAT = "bcat"
CATEGORY_CHUNKS = "chunks"
CATEGORY_CANONICAL = "c"
CATEGORIES = (CATEGORY_B, CATEGORY_BCAT, CATEGORY_CHUNKS, CATEGORY_CANONICAL)

PARTIAL_SUFFIX = ".partial"

DEFAULT_DATA_PATH = "./data"
DEFAULT_DATABASE_PATH = "./data/metadata.db"
DEFAULT_PORT = 8080
DEFAULT_START_HEIGHT = 585000

STREAM_PIECE_SIZE: int = 64 * 1024
