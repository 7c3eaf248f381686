from datetime import date

from flask import current_app, has_app_context


def today():
    """Reference "now" for the services; honours the FIXED_TODAY setting."""
    if has_app_context():
        fixed = current_app.config.get("FIXED_TODAY")
        if fixed:
            return fixed if isinstance(fixed, date) else date.fromisoformat(fixed)
    return date.today()
