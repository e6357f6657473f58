"""Pre-filled form links sent in notification emails."""

from urllib.parse import urlencode


def _prefilled(base_url: str, fields: dict[str, str]) -> str:
    return f"{base_url}?{urlencode({'usp': 'pp_url', **fields})}"


def purge_form_url(base_url: str, eid: str, first_name: str, last_name: str) -> str:
    return _prefilled(base_url, {
        "entry.195529864": eid,
        "entry.1486300689": first_name,
        "entry.1400065751": last_name,
    })


def quiz_url(base_url: str, eid: str, first_name: str, last_name: str) -> str:
    return _prefilled(base_url, {
        "entry.283917136": eid,
        "entry.2131416682": first_name,
        "entry.252391519": last_name,
    })


def onboarding_url(
    base_url: str,
    eid: str,
    email: str,
    first_name: str,
    last_name: str,
    needs_lab_access: bool,
) -> str:
    return _prefilled(base_url, {
        "entry.2112310779": eid,
        "entry.638397220": email,
        "entry.394953257": first_name,
        "entry.1452521463": last_name,
        "entry.537644763": "Yes" if needs_lab_access else "No",
    })


def training_request_url(base_url: str, email: str) -> str:
    return _prefilled(base_url, {"entry.2100904761": email})


def building_access_url(base_url: str, email: str) -> str:
    return _prefilled(base_url, {"entry.638397220": email, "entry.537644763": "No"})


def supplies_url(base_url: str, email: str) -> str:
    return _prefilled(base_url, {"entry.168334817": email})
