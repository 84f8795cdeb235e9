# expense_tracker/forms.py
"""Form state and field validation shared by the login, register and
transaction forms.

Errors are computed on blur and, once a field has been touched, on every
change. Untouched fields never show an error.
"""

from datetime import date

from .models import EXPENSE, parse_amount, parse_date

TITLE_MAX_LENGTH = 100


def _validate_username(value):
    if not value.strip():
        return "Please enter a username"
    if len(value) < 3:
        return "Username must be at least 3 characters"
    return ""


def _validate_password(value):
    if not value:
        return "Please enter a password"
    if len(value) < 6:
        return "Password must be at least 6 characters"
    return ""


def _validate_name(value):
    if not value.strip():
        return "Please enter your full name"
    if len(value) < 2:
        return "Name must be at least 2 characters"
    return ""


def _validate_title(value):
    if not value.strip():
        return "Please enter a title"
    if len(value) > TITLE_MAX_LENGTH:
        return f"Title must not exceed {TITLE_MAX_LENGTH} characters"
    return ""


def _validate_amount(value):
    try:
        amount = parse_amount(value)
    except ValueError:
        return "Amount must be greater than 0"
    if amount <= 0:
        return "Amount must be greater than 0"
    return ""


def _validate_category_name(value):
    if not value.strip():
        return "Please select or enter a category"
    return ""


def _validate_date(value):
    if not value:
        return "Please select a date"
    return ""


VALIDATORS = {
    "username": _validate_username,
    "password": _validate_password,
    "name": _validate_name,
    "title": _validate_title,
    "amount": _validate_amount,
    "categoryName": _validate_category_name,
    "date": _validate_date,
}


def validate_field(name, value):
    """Return the error message for ``name``, or "" when the value is fine"""
    validator = VALIDATORS.get(name)
    if validator is None:
        return ""
    if value is None:
        value = ""
    if name not in ("amount", "date"):
        value = str(value)
    return validator(value)


class FormState:
    def __init__(self, fields, values=None, validated=None):
        self.fields = list(fields)
        self.validated = list(validated if validated is not None else fields)
        self.values = {f: "" for f in self.fields}
        self.values.update(values or {})
        self.errors = {}
        self.touched = set()

    def change(self, field, value):
        self.values[field] = value
        if field in self.touched:
            self.errors[field] = validate_field(field, value)

    def blur(self, field):
        self.touched.add(field)
        self.errors[field] = validate_field(field, self.values.get(field))

    def validate_all(self):
        errors = {}
        for field in self.validated:
            err = validate_field(field, self.values.get(field))
            if err:
                errors[field] = err
        self.errors = errors
        self.touched = set(self.validated)
        return not errors

    def visible_error(self, field):
        if field not in self.touched:
            return ""
        return self.errors.get(field) or ""

    def has_visible_errors(self):
        return any(self.visible_error(f) for f in self.fields)

    def __repr__(self):
        return f"FormState(values={self.values!r}, errors={self.errors!r}, touched={sorted(self.touched)!r})"


# ---------------- Forms ----------------
def login_form():
    return FormState(["username", "password"])


def register_form():
    return FormState(["name", "username", "password"])


TRANSACTION_FIELDS = ["title", "amount", "type", "categoryName", "date", "note"]
TRANSACTION_VALIDATED = ["title", "amount", "categoryName", "date"]


def transaction_form(tx=None, today=None):
    """Blank form for a new transaction, or one pre-filled from ``tx``"""
    if tx is None:
        values = {
            "title": "",
            "amount": "",
            "type": EXPENSE,
            "categoryName": "",
            "date": (today or date.today()).isoformat(),
            "note": "",
        }
    else:
        values = {
            "title": tx.title,
            "amount": str(tx.amount),
            "type": tx.type,
            "categoryName": tx.category_name or "",
            "date": tx.date.isoformat(),
            "note": tx.note or "",
        }
    return FormState(TRANSACTION_FIELDS, values, validated=TRANSACTION_VALIDATED)


def transaction_payload(form):
    """Request body for create/update; the server upserts the category by name"""
    values = form.values
    tx_date = parse_date(values.get("date"))
    return {
        "title": values.get("title", "").strip(),
        "amount": float(parse_amount(values.get("amount"))),
        "type": values.get("type") or EXPENSE,
        "categoryName": values.get("categoryName", "").strip(),
        "date": tx_date.isoformat() if tx_date else "",
        "note": values.get("note") or "",
    }


def suggest_categories(categories, typed):
    needle = (typed or "").lower()
    return [c for c in categories if needle in c.name.lower()]
