from __future__ import annotations

from dataclasses import dataclass, field

from ..attendance.service import AttendanceProcessor
from ..biotime.service import BioTimeIngestionService
from ..core.enums import RequestType
from ..core.exceptions import ValidationError
from .handlers.base import QueueHandler
from .handlers.date_range_handler import DateRangeHandler, HistoricalBackfillHandler
from .handlers.gap_fill_handler import GapFillHandler
from .handlers.manual_repoll_handler import ManualRepollHandler
from .handlers.single_date_handler import MissingDataHandler


@dataclass
class QueueHandlerFactory:
    """Factory Pattern: one handler per request type."""

    handlers: dict[RequestType, QueueHandler] = field(default_factory=dict)

    @classmethod
    def build(cls, ingestion: BioTimeIngestionService, processor: AttendanceProcessor) -> "QueueHandlerFactory":
        return cls(
            handlers={
                RequestType.DATE_RANGE: DateRangeHandler(ingestion),
                RequestType.HISTORICAL_BACKFILL: HistoricalBackfillHandler(ingestion),
                RequestType.MISSING_DATA: MissingDataHandler(ingestion),
                RequestType.MANUAL_REPOLL: ManualRepollHandler(ingestion, processor),
                RequestType.GAP_FILL: GapFillHandler(ingestion),
            }
        )

    def for_type(self, request_type: RequestType) -> QueueHandler:
        handler = self.handlers.get(request_type)
        if handler is None:
            raise ValidationError(f"No handler for request type {request_type.value}")
        return handler
