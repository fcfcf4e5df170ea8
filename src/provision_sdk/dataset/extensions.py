"""Custom validation rules for provisioning data.

Registers rules which the built-in engine does not provide but which
provider data sets commonly need: domain names, phone numbers, country
codes, numeric steps and PEM certificates.
"""

from __future__ import annotations

import re
from typing import Any

from provision_sdk.dataset.validator import Validator, is_numeric

# ISO 3166-1 alpha-2 codes
COUNTRY_CODES = frozenset("""
    AD AE AF AG AI AL AM AO AQ AR AS AT AU AW AX AZ BA BB BD BE BF BG BH BI BJ
    BL BM BN BO BQ BR BS BT BV BW BY BZ CA CC CD CF CG CH CI CK CL CM CN CO CR
    CU CV CW CX CY CZ DE DJ DK DM DO DZ EC EE EG EH ER ES ET FI FJ FK FM FO FR
    GA GB GD GE GF GG GH GI GL GM GN GP GQ GR GS GT GU GW GY HK HM HN HR HT HU
    ID IE IL IM IN IO IQ IR IS IT JE JM JO JP KE KG KH KI KM KN KP KR KW KY KZ
    LA LB LC LI LK LR LS LT LU LV LY MA MC MD ME MF MG MH MK ML MM MN MO MP MQ
    MR MS MT MU MV MW MX MY MZ NA NC NE NF NG NI NL NO NP NR NU NZ OM PA PE PF
    PG PH PK PL PM PN PR PS PT PW PY QA RE RO RS RU RW SA SB SC SD SE SG SH SI
    SJ SK SL SM SN SO SR SS ST SV SX SY SZ TC TD TF TG TH TJ TK TL TM TN TO TR
    TT TV TW TZ UA UG UM US UY UZ VA VC VE VG VI VN VU WF WS YE YT ZA ZM ZW
""".split())

# Transitionally reserved or deleted codes still seen in contact data
RESERVED_COUNTRY_CODES = frozenset({"AN", "BU", "CS", "NT", "SF", "TP", "UK", "YU", "ZR"})

CERTIFICATE_PEM_PATTERN = re.compile(
    r"(-----BEGIN (PUBLIC KEY|(RSA )?PRIVATE KEY|CERTIFICATE)-----(\n|\r|\r\n)"
    r"([0-9a-zA-Z+/=]{64}(\n|\r|\r\n))*([0-9a-zA-Z+/=]{1,63}(\n|\r|\r\n))?"
    r"-----END (PUBLIC KEY|(RSA )?PRIVATE KEY|CERTIFICATE)-----(\n|\r|\r\n)?)+"
)

_DOMAIN_CHARACTERS = re.compile(r"([a-z\d](-*[a-z\d])*)(\.([a-z\d](-*[a-z\d])*))+", re.IGNORECASE)
_DOMAIN_LABELS = re.compile(r"[^.]{1,63}(\.[^.]{1,63})*")
_PHONE_SEPARATORS = re.compile(r"[\s\-./()]")
_INTERNATIONAL_PHONE = re.compile(r"\+\d{7,15}")
_NATIONAL_PHONE = re.compile(r"\+?\d{6,15}")

# Numbering plans which general length checks reject
_MANUAL_PHONE_PATTERNS = (
    re.compile(r"(\+212|0)\.?([ \-_/]*)(\d[ \-_/]*){9}"),
    re.compile(r"(\+263|0)\.?([ \-_/]*)(\d[ \-_/]*){9}"),
    re.compile(r"(\+225|0)\.?([ \-_/]*)(\d[ \-_/]*){10}"),
    re.compile(r"(\+234|0)91\.?([ \-_/]*)(\d[ \-_/]*){8}$"),
)

_FLOAT_PRECISION = 0.0000000001


def validate_alpha_score(field: str, value: Any, arguments: list, validator: Validator) -> bool:
    return re.search(r"[^\w]", str(value), re.ASCII) is None


def validate_alpha_dash_dot(field: str, value: Any, arguments: list, validator: Validator) -> bool:
    return re.search(r"[^\w\-.]", str(value), re.ASCII) is None


def validate_domain_name(field: str, value: Any, arguments: list, validator: Validator) -> bool:
    return (
        isinstance(value, str)
        and _DOMAIN_CHARACTERS.fullmatch(value) is not None
        and 3 <= len(value) <= 253
        and _DOMAIN_LABELS.fullmatch(value) is not None
    )


def validate_international_phone(field: str, value: Any, arguments: list, validator: Validator) -> bool:
    """Check a phone number in international format.

    With a country field argument (``international_phone:country_code``) the
    number may also be given in national format.
    """
    value = str(value)
    digits = _PHONE_SEPARATORS.sub("", value)

    if arguments and arguments[0]:
        country_code = str(validator.get_value(arguments[0]) or "")
        if not _NATIONAL_PHONE.fullmatch(digits) and not _manual_check_phone(value):
            validator.add_error(field, f"This is not a valid {country_code.upper()} phone number")
        return True

    if not value.startswith("+"):
        validator.add_error(field, "The phone number must begin with +{dialing code}")
        return True

    return _INTERNATIONAL_PHONE.fullmatch(digits) is not None or _manual_check_phone(value)


def validate_country_code(field: str, value: Any, arguments: list, validator: Validator) -> bool:
    code = str(value).upper()
    return code in RESERVED_COUNTRY_CODES or code in COUNTRY_CODES


def validate_step(field: str, value: Any, arguments: list, validator: Validator) -> bool:
    """Check the value is a multiple of the step argument.

    Non-numbers fail as ``numeric``, and non-integers under a step of 1 fail
    as ``integer``.
    """
    step = get_step_argument(arguments)

    if not is_numeric(value):
        validator.add_failure(field, "numeric")
        return True

    if is_divisible(float(value), step):
        return True

    if step == 1:
        validator.add_failure(field, "integer")
        return True

    return False


def replace_step(message: str, field: str, rule: str, arguments: list, validator: Validator) -> str:
    if message == "validation.step":
        message = "The :attribute must be a multiple of :step."
    return (
        message.replace(":attribute", validator.get_display_attribute(field))
        .replace(":step", arguments[0] if arguments else "")
    )


def validate_certificate_pem(field: str, value: Any, arguments: list, validator: Validator) -> bool:
    if not isinstance(value, str):
        validator.add_failure(field, "string")
        return True
    return CERTIFICATE_PEM_PATTERN.fullmatch(value) is not None


def get_step_argument(arguments: list) -> float:
    if len(arguments) != 1:
        raise ValueError("Step rule requires a single argument")
    if not is_numeric(arguments[0]):
        raise ValueError("Step rule argument must be numeric")

    step = float(arguments[0])
    if -_FLOAT_PRECISION < step < _FLOAT_PRECISION:
        raise ValueError("Step rule argument cannot be zero")
    return step


def is_divisible(x: float, y: float) -> bool:
    return abs((x / y) - round(x / y)) < _FLOAT_PRECISION


def _manual_check_phone(value: str) -> bool:
    return any(pattern.search(value) for pattern in _MANUAL_PHONE_PATTERNS)


def register_extensions() -> None:
    """Register the custom rules with the Validator."""
    Validator.extend(
        "alpha_score", validate_alpha_score,
        "This value must only contain letters, numbers and underscores.",
    )
    Validator.extend(
        "alpha_dash_dot", validate_alpha_dash_dot,
        "This value must only contain letters, numbers, dashes, underscores and periods.",
    )
    Validator.extend("domain_name", validate_domain_name, "This is not a valid domain name.")
    Validator.extend(
        "international_phone", validate_international_phone,
        "This is not a valid international phone number",
    )
    Validator.extend("country_code", validate_country_code, "This is not a valid country code.")
    Validator.extend("step", validate_step)
    Validator.replacer("step", replace_step)
    Validator.extend(
        "certificate_pem", validate_certificate_pem,
        "The :attribute must be a certificate in PEM format",
    )


register_extensions()
