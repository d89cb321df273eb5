from typing import Dict, Any, Optional, Tuple
from datetime import datetime, timezone, timedelta
import json
import logging
import re

from dateutil import parser as date_parser

from .schema import NormalizedEvent, describePayload
from .field_mapper import FieldMapper


# ConvertTo-Json serializes DateTime values as /Date(1709288100000)/
_EPOCH_DATE_PATTERN = re.compile(r'^/Date\((-?\d+)(?:[+-]\d{4})?\)/$')
_IPV4_WITH_PORT = re.compile(r'^(\d{1,3}(?:\.\d{1,3}){3}):\d+$')
_BRACKETED_IPV6 = re.compile(r'^\[([0-9A-Fa-f:.]+)\](?::\d+)?$')


class RecordNormalizer:

    def __init__(self):
        self.logger = logging.getLogger(self.__class__.__name__)
        self.fieldMapper = FieldMapper()

    def normalize(
        self,
        rawRecord: Dict[str, Any],
        sourceFile: str = '',
        ingestionIndex: int = 0
    ) -> NormalizedEvent:
        """
        Flatten one raw audit record into a NormalizedEvent.

        Never raises for malformed content: an unparseable payload leaves
        payload=None with the original text in payloadRaw, an unparseable
        timestamp leaves creationTime=None with the original text kept.
        """
        consumed = set()

        payloadValue, payloadKey = self.fieldMapper.resolve(rawRecord, None, 'payload')
        if payloadKey:
            consumed.add(payloadKey)
        payload, payloadRaw = self._parsePayload(payloadValue, sourceFile, ingestionIndex)

        fields: Dict[str, Any] = {}
        for target in ('recordId', 'recordType', 'operation', 'creationTime', 'actor'):
            value, key = self.fieldMapper.resolve(rawRecord, payload, target)
            fields[target] = value
            if key:
                consumed.add(key)

        recordId = _asText(fields['recordId'])
        syntheticId = not recordId
        if syntheticId:
            recordId = f"{sourceFile or 'record'}#{ingestionIndex}"
        creationTimeRaw = _asText(fields['creationTime'])
        creationTime = self._parseTimestamp(creationTimeRaw, recordId)

        event = NormalizedEvent(
            recordId=recordId,
            recordType=_asText(self.fieldMapper.recordTypeName(fields['recordType'])),
            operation=_asText(fields['operation']),
            creationTime=creationTime,
            creationTimeRaw=creationTimeRaw,
            actor=_asText(fields['actor']),
            payload=payload,
            payloadRaw=payloadRaw,
            payloadKinds=[(key, kind) for key, kind, _ in describePayload(payload)],
            sourceAddress=_cleanAddress(self.fieldMapper.sourceAddress(payload)),
            syntheticId=syntheticId,
            sourceFile=sourceFile,
            ingestionIndex=ingestionIndex,
            extraFields={k: v for k, v in rawRecord.items() if k not in consumed}
        )

        return event

    def _parsePayload(
        self,
        value: Any,
        sourceFile: str,
        ingestionIndex: int
    ) -> Tuple[Optional[Dict[str, Any]], Optional[str]]:
        if value is None:
            return {}, None

        if isinstance(value, dict):
            return value, None

        if isinstance(value, str):
            try:
                decoded = json.loads(value)
            except ValueError as e:
                self.logger.warning(
                    f"Unparsed payload for record {ingestionIndex} in {sourceFile}: {e}"
                )
                return None, value

            if isinstance(decoded, dict):
                return decoded, value

            self.logger.warning(
                f"Unparsed payload for record {ingestionIndex} in {sourceFile}: "
                f"expected a JSON object, got {type(decoded).__name__}"
            )
            return None, value

        self.logger.warning(
            f"Unparsed payload for record {ingestionIndex} in {sourceFile}: "
            f"unexpected {type(value).__name__} value"
        )
        return None, json.dumps(value, ensure_ascii=False, default=str)

    def _parseTimestamp(self, text: str, recordId: str) -> Optional[datetime]:
        if not text:
            self.logger.warning(f"Record {recordId} has no creation timestamp")
            return None

        try:
            epochMatch = _EPOCH_DATE_PATTERN.match(text)
            if epochMatch:
                millis = int(epochMatch.group(1))
                return datetime(1970, 1, 1, tzinfo=timezone.utc) + timedelta(milliseconds=millis)

            parsed = date_parser.parse(text)

            # Audit timestamps are UTC even when the export drops the designator
            if parsed.tzinfo is None:
                return parsed.replace(tzinfo=timezone.utc)
            return parsed.astimezone(timezone.utc)
        except (ValueError, OverflowError) as e:
            self.logger.warning(f"Failed to parse timestamp '{text}' for record {recordId}: {e}")
            return None


def _asText(value: Any) -> str:
    if value is None:
        return ''
    if isinstance(value, (list, tuple)):
        return ', '.join(str(v) for v in value)
    return str(value).strip()


def _cleanAddress(address: Optional[str]) -> Optional[str]:
    if not address:
        return None
    match = _IPV4_WITH_PORT.match(address) or _BRACKETED_IPV6.match(address)
    if match:
        return match.group(1)
    return address
