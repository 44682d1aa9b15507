from django.db import transaction
import logging

from core_backend.exceptions import ResourceNotFoundError
from .exceptions import TableOccupiedError
from .models import Table

logger = logging.getLogger(__name__)


class TableService:
    """Table registry used by the order engine to seat and release guests."""

    @staticmethod
    def get_table(table_id, lock: bool = False) -> Table:
        queryset = Table.objects.all()
        if lock:
            queryset = queryset.select_for_update()
        try:
            return queryset.get(pk=table_id)
        except Table.DoesNotExist:
            raise ResourceNotFoundError("Table", table_id)

    @staticmethod
    @transaction.atomic
    def set_status(table_id, status: str) -> Table:
        table = TableService.get_table(table_id, lock=True)
        if table.status != status:
            table.status = status
            table.save(update_fields=["status", "updated_at"])
            logger.debug(f"Table {table.name} -> {status}")
        return table

    @staticmethod
    @transaction.atomic
    def ensure_available(table_id) -> Table:
        """Lock the table row and fail if a guest is already seated there."""
        table = TableService.get_table(table_id, lock=True)
        if table.is_occupied:
            raise TableOccupiedError(table)
        return table

    @staticmethod
    def occupy(table_id) -> Table:
        return TableService.set_status(table_id, Table.TableStatus.OCCUPIED)

    @staticmethod
    def release(table_id) -> Table:
        return TableService.set_status(table_id, Table.TableStatus.AVAILABLE)
