"""Security audit trail for geocoding permission violations."""

from typing import Optional

from marker_import.core.logging import get_audit_logger
from marker_import.models.records import CandidateRecord


class SecurityAudit:
    """Records security-relevant events on the audit channel.

    Audit events never show up in RunResult; they are meant for later review
    by whoever operates the host application.
    """

    def __init__(
        self,
        account_id: Optional[str] = None,
        map_id: Optional[str] = None,
        run_id: Optional[str] = None,
    ) -> None:
        self.account_id = account_id
        self.map_id = map_id
        self.run_id = run_id
        self.events = 0

    def geocoding_denied(self, record: CandidateRecord) -> None:
        """Log an attempt to geocode without the account's permission."""
        self.events += 1
        get_audit_logger().warning(
            "geocoding_denied",
            violation="geocoding_not_permitted",
            run_id=self.run_id,
            account_id=self.account_id,
            map_id=self.map_id,
            row_index=record.row_index,
            name=record.name,
            address=record.address,
            lat=record.lat,
            lng=record.lng,
        )
