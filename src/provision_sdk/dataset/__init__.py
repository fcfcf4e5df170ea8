"""Data sets - declarative rules, the rule engine and validated data views."""

from provision_sdk.dataset import rule_parser
from provision_sdk.dataset.base import DataSet
from provision_sdk.dataset.common import (
    AboutData,
    EmptyData,
    ResultData,
    StorageConfiguration,
    SystemInfo,
)
from provision_sdk.dataset.extensions import register_extensions
from provision_sdk.dataset.rule_parser import NESTED_DATA_SET_RULE
from provision_sdk.dataset.rules import Rules
from provision_sdk.dataset.validator import Validator

__all__ = [
    "DataSet",
    "Rules",
    "Validator",
    "rule_parser",
    "NESTED_DATA_SET_RULE",
    "register_extensions",
    # Common data sets
    "EmptyData",
    "ResultData",
    "AboutData",
    "SystemInfo",
    "StorageConfiguration",
]
