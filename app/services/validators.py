from datetime import date, datetime
from typing import List, Mapping, Type, TypeVar

import pytz
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from app.core.config import settings
from app.core.exceptions import ValidationError

ParamsT = TypeVar("ParamsT", bound=BaseModel)


class ParameterValidator:
    """Validates raw request parameters before any store access."""

    def __init__(self, timezone_name: str = None):
        self.timezone = pytz.timezone(timezone_name or settings.TIMEZONE)

    def missing_fields(self, params: Mapping[str, str], required: List[str]) -> List[str]:
        """Return the required parameters that are absent or empty."""
        missing = []
        for name in required:
            value = params.get(name)
            if value is None or len(str(value)) == 0:
                missing.append(name)
        return missing

    def parse(self, model: Type[ParamsT], params: Mapping[str, str]) -> ParamsT:
        """Check every required field is present, then coerce the strings into the model."""
        required = [name for name, field in model.model_fields.items() if field.is_required()]
        missing = self.missing_fields(params, required)
        if missing:
            raise ValidationError(
                f"Please enter all necessary fields: {', '.join(missing)}",
                fields=missing
            )

        try:
            return model(**{name: params[name] for name in model.model_fields if name in params})
        except PydanticValidationError as e:
            invalid = [".".join(str(x) for x in error["loc"]) for error in e.errors()]
            raise ValidationError(
                f"Invalid value for: {', '.join(invalid)}",
                fields=invalid
            ) from e

    def to_local_date(self, epoch_seconds: int) -> date:
        """Convert epoch seconds to a calendar date in the configured time zone."""
        try:
            moment = datetime.fromtimestamp(int(epoch_seconds), tz=pytz.utc)
        except (OverflowError, OSError, ValueError) as e:
            raise ValidationError(f"Date {epoch_seconds} is out of range", fields=["date"]) from e
        return moment.astimezone(self.timezone).date()
