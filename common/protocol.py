"""Decodes B / BCAT / BCHUNK records out of transaction output fields."""

import base64
import binascii
from typing import Any, List, Mapping, Optional, Union

from common.constants import (
    B_PROTOCOL_ID,
    BCAT_PROTOCOL_ID,
    BCHUNK_PROTOCOL_ID,
    CONTENT_TYPE_FIELD,
    ENCODING_FIELD,
    FILENAME_FIELD,
    FIRST_CHUNK_INDEX,
    FLAG_FIELD,
    INFO_FIELD,
    OP_RETURN,
    PAYLOAD_FIELDS,
    PROTOCOL_FIELD,
)
from common.logging_config import get_logger
from common.types import (
    ChunkPart,
    MultiChunkManifest,
    NotApplicable,
    SingleFile,
    TransactionRecord,
)

logger = get_logger(__name__)

ProtocolRecord = Union[SingleFile, MultiChunkManifest, ChunkPart, type(NotApplicable)]


class MalformedRecordError(ValueError):
    """Raised internally when a recognized record has an invalid shape."""
    pass


def decode_payload(payload: str) -> bytes:
    """
    Decode base64 payload text into raw bytes.

    Args:
        payload: base64 text taken from a ``b2``/``lb2`` field

    Returns:
        Decoded bytes

    Raises:
        binascii.Error: If payload is not valid base64
    """
    return base64.b64decode(payload)


def find_nulldata_output(record: TransactionRecord) -> Optional[Mapping[str, Any]]:
    """Return the first OP_RETURN output of a transaction, if any."""
    for output in record.outputs:
        if not isinstance(output, Mapping):
            continue
        opcode = output.get("b0")
        if isinstance(opcode, Mapping) and opcode.get("op") == OP_RETURN:
            return output
    return None


def _optional_text(output: Mapping[str, Any], key: str) -> Optional[str]:
    value = output.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise MalformedRecordError(f"Field {key} is not text")
    return value


def _payload(output: Mapping[str, Any]) -> str:
    data = ""
    for key in PAYLOAD_FIELDS:
        if output.get(key):
            data = output[key]
            break
    if not isinstance(data, str):
        raise MalformedRecordError("Payload is not text")
    try:
        decode_payload(data)
    except (binascii.Error, ValueError) as e:
        raise MalformedRecordError(f"Payload is not base64: {e}")
    return data


def _chunk_ids(output: Mapping[str, Any]) -> List[str]:
    chunk_ids = []
    index = FIRST_CHUNK_INDEX
    while True:
        chunk_id = output.get(f"h{index}")
        if not chunk_id:
            break
        if not isinstance(chunk_id, str):
            raise MalformedRecordError(f"Chunk id h{index} is not text")
        chunk_ids.append(chunk_id)
        index += 1
    return chunk_ids


def decode_transaction(record: TransactionRecord) -> ProtocolRecord:
    """
    Turn one transaction into a typed protocol record.

    Never raises: anything structurally malformed is reported as
    NotApplicable so a single bad transaction cannot stop the feed.

    Args:
        record: Transaction as received from the upstream feed

    Returns:
        SingleFile, MultiChunkManifest, ChunkPart or NotApplicable
    """
    try:
        output = find_nulldata_output(record)
        if output is None:
            return NotApplicable

        protocol_id = output.get(PROTOCOL_FIELD)

        if protocol_id == B_PROTOCOL_ID:
            return SingleFile(
                content_type=_optional_text(output, CONTENT_TYPE_FIELD),
                encoding=_optional_text(output, ENCODING_FIELD),
                filename=_optional_text(output, FILENAME_FIELD),
                payload=_payload(output),
            )

        if protocol_id == BCAT_PROTOCOL_ID:
            return MultiChunkManifest(
                content_type=_optional_text(output, CONTENT_TYPE_FIELD),
                encoding=_optional_text(output, ENCODING_FIELD),
                filename=_optional_text(output, FILENAME_FIELD),
                chunk_ids=tuple(_chunk_ids(output)),
                info=_optional_text(output, INFO_FIELD),
                flag=_optional_text(output, FLAG_FIELD),
            )

        if protocol_id == BCHUNK_PROTOCOL_ID:
            return ChunkPart(payload=_payload(output))

        return NotApplicable
    except Exception as e:
        logger.debug(f"Skipping malformed record in tx {record.tx_id}: {e}")
        return NotApplicable
