"""Form field validation.

The rules for each entity are a static table (field name -> rule set) that
the handlers look up by entity name. Validation trims, checks and escapes the
submitted values and collects every failure instead of stopping at the first.
"""
import html
import re
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

from locallibrary.models import BookInstanceStatus

Check = Tuple[Callable[[str], bool], str]


def is_alphanumeric(value: str) -> bool:
    return value.isalnum()


def is_iso_date(value: str) -> bool:
    if not re.match(r"^\d{4}-\d{2}-\d{2}$", value):
        return False
    try:
        date.fromisoformat(value)
    except ValueError:
        return False
    return True


def is_status(value: str) -> bool:
    return value in BookInstanceStatus.values()


@dataclass(frozen=True)
class FieldRule:
    message: str = ""
    required: bool = True
    trim: bool = True
    escape: bool = True
    many: bool = False
    checks: Tuple[Check, ...] = ()


@dataclass
class FieldError:
    param: str
    msg: str
    value: Any = None


@dataclass
class ValidationResult:
    values: Dict[str, Any] = field(default_factory=dict)
    errors: List[FieldError] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors


VALIDATION_RULES: Dict[str, Dict[str, FieldRule]] = {
    "author": {
        "first_name": FieldRule(
            "First name must be specified.",
            checks=((is_alphanumeric, "First name has non-alphanumeric characters."),),
        ),
        "family_name": FieldRule(
            "Family name must be specified.",
            checks=((is_alphanumeric, "Family name has non-alphanumeric characters."),),
        ),
        "date_of_birth": FieldRule(
            required=False, escape=False, checks=((is_iso_date, "Invalid date of birth"),),
        ),
        "date_of_death": FieldRule(
            required=False, escape=False, checks=((is_iso_date, "Invalid date of death"),),
        ),
    },
    "genre": {
        "name": FieldRule("Genre name required"),
    },
    "book": {
        "title": FieldRule("Title must not be empty."),
        "author": FieldRule("Author must not be empty."),
        "summary": FieldRule("Summary must not be empty."),
        "isbn": FieldRule("ISBN must not be empty"),
        "genre": FieldRule(required=False, many=True),
    },
    "bookinstance": {
        "book": FieldRule("Book must be specified"),
        "imprint": FieldRule("Imprint must be specified"),
        "status": FieldRule("Invalid status", checks=((is_status, "Invalid status"),)),
        "due_back": FieldRule(required=False, escape=False, checks=((is_iso_date, "Invalid date"),)),
    },
}


def _get_list(form: Mapping, name: str) -> List[Any]:
    getlist = getattr(form, "getlist", None)
    if callable(getlist):
        return list(getlist(name))
    value = form.get(name)
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return list(value)
    return [value]


def _sanitize(value: Any, rule: FieldRule) -> str:
    text = "" if value is None else str(value)
    if rule.trim:
        text = text.strip()
    return text


def _check(name: str, text: str, rule: FieldRule, errors: List[FieldError]) -> None:
    if not text:
        if rule.required:
            errors.append(FieldError(name, rule.message, text))
        return
    for predicate, message in rule.checks:
        if not predicate(text):
            errors.append(FieldError(name, message, text))
            return


def validate(entity: str, form: Mapping) -> ValidationResult:
    """Sanitize and check ``form`` against the rules registered for ``entity``."""
    rules = VALIDATION_RULES[entity]
    result = ValidationResult()
    for name, rule in rules.items():
        if rule.many:
            items = [_sanitize(v, rule) for v in _get_list(form, name)]
            items = [i for i in items if i]
            result.values[name] = [escape_text(i) if rule.escape else i for i in items]
            continue

        text = _sanitize(form.get(name), rule)
        _check(name, text, rule, result.errors)
        if not text and not rule.required:
            result.values[name] = None
        else:
            result.values[name] = escape_text(text) if rule.escape else text
    return result


def escape_text(value: str) -> str:
    """The stored form of free text, as written by ``validate``."""
    return html.escape(value)


def single_error(message: str, param: Optional[str] = None) -> List[FieldError]:
    """A synthetic error list for conditions found after field validation."""
    return [FieldError(param or "", message)]
