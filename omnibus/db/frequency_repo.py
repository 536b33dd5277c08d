"""Repository for the ``frequencies`` table."""

from __future__ import annotations

from typing import Any

from omnibus.db.base_repo import Repository, utcnow
from omnibus.db.filters import FrequencyFilter
from omnibus.errors import ValidationError
from omnibus.models.frequency import ExportFlag, Frequency


class FrequencyRepository(Repository[Frequency]):
    """Conventional channels, ordered by frequency."""

    MODEL = Frequency
    FILTER = FrequencyFilter
    ORDER_BY = "frequency ASC, id ASC"

    def _check_values(self, fields: dict[str, Any]) -> None:
        for column in ("frequency", "transmit_frequency", "offset"):
            value = fields.get(column)
            if value is None:
                continue
            try:
                fields[column] = float(value)
            except (TypeError, ValueError):
                raise ValidationError(f"{column} must be a number, got {value!r}") from None
        if "frequency" in fields and fields["frequency"] <= 0:
            raise ValidationError(f"frequency must be positive, got {fields['frequency']}")

    # -- Export flags ----------------------------------------------------------

    def toggle_flag(self, frequency_id: int, flag: str | ExportFlag) -> bool:
        """Flip one export flag (1 <-> 0); every other column is untouched."""
        try:
            column = ExportFlag.parse(flag).value
        except ValueError:
            raise ValidationError(f"Unknown export flag: {flag!r}") from None
        with self._db.transaction() as conn:
            cur = conn.execute(
                f"""UPDATE frequencies
                    SET {column} = CASE WHEN {column} = 1 THEN 0 ELSE 1 END,
                        updated_at = ?
                    WHERE id = ?""",
                (utcnow(), frequency_id),
            )
            return cur.rowcount > 0
