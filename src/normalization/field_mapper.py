from typing import Dict, Any, Optional, List, Tuple
import logging


# Management Activity API RecordType codes seen in flattened exports
RECORD_TYPE_NAMES: Dict[int, str] = {
    1: 'ExchangeAdmin',
    2: 'ExchangeItem',
    3: 'ExchangeItemGroup',
    4: 'SharePoint',
    6: 'SharePointFileOperation',
    7: 'OneDrive',
    8: 'AzureActiveDirectory',
    9: 'AzureActiveDirectoryAccountLogon',
    14: 'SharePointSharingOperation',
    15: 'AzureActiveDirectoryStsLogon',
    18: 'SecurityComplianceCenterEOPCmdlet',
    20: 'PowerBIAudit',
    21: 'CRM',
    25: 'MicrosoftTeams',
    45: 'PowerAppsApp',
    50: 'ExchangeItemAggregated',
}


class FieldMapper:

    def __init__(self):
        """Initialize field mapper with predefined mappings."""
        self.logger = logging.getLogger(self.__class__.__name__)
        self._initializeMappings()

    def _initializeMappings(self) -> None:
        """Candidate keys per canonical field, tried in order."""

        # Search-UnifiedAuditLog export first, flattened API form second
        self.recordMapping: Dict[str, List[str]] = {
            'recordId': ['Identity', 'Id', 'RecordId'],
            'recordType': ['RecordType', 'Workload'],
            'operation': ['Operations', 'Operation'],
            'creationTime': ['CreationDate', 'CreationTime'],
            'actor': ['UserIds', 'UserId', 'UserKey'],
            'payload': ['AuditData']
        }

        # Fallbacks inside the parsed AuditData payload
        self.payloadMapping: Dict[str, List[str]] = {
            'recordId': ['Id'],
            'recordType': ['RecordType', 'Workload'],
            'operation': ['Operation'],
            'creationTime': ['CreationTime'],
            'actor': ['UserId', 'UserKey']
        }

        self.sourceAddressFields = [
            'ClientIP',
            'ClientIPAddress',
            'ActorIpAddress',
            'IPAddress',
            'ClientIp'
        ]

    def resolve(
        self,
        record: Dict[str, Any],
        payload: Optional[Dict[str, Any]],
        target_field: str
    ) -> Tuple[Optional[Any], Optional[str]]:
        """Return (value, consumed top-level key) for one canonical field."""
        for key in self.recordMapping.get(target_field, []):
            value = record.get(key)
            if not self._isEmpty(value):
                return value, key

        if payload:
            for path in self.payloadMapping.get(target_field, []):
                value = self._extractNestedField(payload, path)
                if not self._isEmpty(value):
                    return value, None

        return None, None

    def recordTypeName(self, value: Any) -> Any:
        if isinstance(value, int) and not isinstance(value, bool):
            return RECORD_TYPE_NAMES.get(value, str(value))
        if isinstance(value, str) and value.strip().isdigit():
            return RECORD_TYPE_NAMES.get(int(value.strip()), value.strip())
        return value

    def sourceAddress(self, payload: Optional[Dict[str, Any]]) -> Optional[str]:
        if not payload:
            return None
        for key in self.sourceAddressFields:
            value = payload.get(key)
            if not self._isEmpty(value):
                return str(value).strip()
        return None

    def _extractNestedField(
        self,
        data: Dict[str, Any],
        field_path: str
    ) -> Optional[Any]:
        keys = field_path.split('.')
        value = data

        for key in keys:
            if isinstance(value, dict):
                value = value.get(key)
            else:
                return None

            if value is None:
                return None

        return value

    @staticmethod
    def _isEmpty(value: Any) -> bool:
        return value is None or (isinstance(value, str) and not value.strip())
