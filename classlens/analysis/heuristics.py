"""Named text heuristics used by the security rules.

Each function looks only at strings (literal values, identifier names or
rendered node text) so it can be tested without a syntax tree.
"""

import re

CREDENTIAL_NAME_TOKENS = (
    "password",
    "secret",
    "key",
    "token",
    "user",
    "credential",
    "auth",
    "api_key",
    "access_key",
)

SENSITIVE_LOCAL_TOKENS = ("password", "secret", "key", "token")

SECURITY_CONTEXT_TOKENS = ("password", "key", "token", "crypto", "security", "auth")

PLACEHOLDER_VALUES = {
    "password",
    "secret",
    "user",
    "test",
    "example",
    "demo",
    "default",
    "changeme",
    "",
}
PLACEHOLDER_PREFIXES = ("todo", "placeholder", "your_", "enter_")

PRIVILEGED_ACCOUNTS = {"admin", "administrator", "root", "sa"}

SECURE_SOURCE_MARKERS = (
    "System.getProperty",
    "System.getenv",
    "SecureRandom",
    "KeyGenerator",
    "getPassword()",
)

CONFIG_CONTEXT_MARKERS = ("System.getProperty", "System.getenv", "config", "properties")

PASSWORD_SPECIAL_CHARS = set("!@#$%^&*()_+-=[]{}|;:,.<>?")

USER_INPUT_NAME_TOKENS = ("input", "param", "request", "user")

INDEX_NAME_TOKENS = ("index", "pos", "offset")

SQL_VARIABLE_TOKENS = ("query", "sql", "statement")

SECURITY_CRITICAL_METHOD_TOKENS = ("sql", "query", "execute", "command")

LOOKUP_CALL_PREFIXES = ("get", "find", "search", "lookup")

PRIMITIVE_TYPES = {"int", "long", "double", "float", "boolean", "char", "byte", "short"}


def is_credential_name(name: str) -> bool:
    lowered = name.lower()
    return any(token in lowered for token in CREDENTIAL_NAME_TOKENS)


def is_sensitive_local_name(name: str) -> bool:
    lowered = name.lower()
    return any(token in lowered for token in SENSITIVE_LOCAL_TOKENS)


def is_placeholder_value(value: str) -> bool:
    lowered = value.lower()
    return lowered in PLACEHOLDER_VALUES or lowered.startswith(PLACEHOLDER_PREFIXES)


def looks_like_password(value: str) -> bool:
    """At least six characters drawn from two or more character classes."""
    if len(value) < 6:
        return False
    classes = (
        any(c.isupper() for c in value),
        any(c.islower() for c in value),
        any(c.isdigit() for c in value),
        any(c in PASSWORD_SPECIAL_CHARS for c in value),
    )
    return sum(classes) >= 2


def looks_like_api_key(value: str) -> bool:
    if len(value) < 16 or len(value) > 128:
        return False
    allowed = sum(1 for c in value if c.isalnum() or c in "-_")
    return allowed / len(value) > 0.8


def looks_like_token(value: str) -> bool:
    return ("." in value and len(value) > 20) or (len(value) > 32 and value.isalnum())


def looks_like_credential(value: str) -> bool:
    """Does a string literal value resemble a secret or a privileged account?"""
    if len(value) < 3:
        return False
    if looks_like_password(value) or looks_like_api_key(value) or looks_like_token(value):
        return True
    lowered = value.lower()
    return lowered in PRIVILEGED_ACCOUNTS or ("admin" in lowered and len(value) < 20)


def is_from_secure_source(initializer_text: str) -> bool:
    """Was the value read from the environment, system properties or a secure generator?"""
    return any(marker in initializer_text for marker in SECURE_SOURCE_MARKERS)


def is_config_context(text: str) -> bool:
    return any(marker in text for marker in CONFIG_CONTEXT_MARKERS)


def is_security_context(text: str) -> bool:
    lowered = text.lower()
    return any(token in lowered for token in SECURITY_CONTEXT_TOKENS)


def is_test_method_name(name: str) -> bool:
    lowered = name.lower()
    return "test" in lowered or lowered == "main"


def is_security_critical_method_name(name: str) -> bool:
    lowered = name.lower()
    return any(token in lowered for token in SECURITY_CRITICAL_METHOD_TOKENS)


def is_user_input_name(name: str) -> bool:
    lowered = name.lower()
    return any(token in lowered for token in USER_INPUT_NAME_TOKENS)


def is_index_like_name(name: str) -> bool:
    lowered = name.lower()
    return any(token in lowered for token in INDEX_NAME_TOKENS)


def is_sql_variable_name(name: str) -> bool:
    lowered = name.lower()
    return any(token in lowered for token in SQL_VARIABLE_TOKENS)


def is_lookup_call_name(name: str) -> bool:
    return name.lower().startswith(LOOKUP_CALL_PREFIXES)


def is_constant_or_static_name(name: str) -> bool:
    """UPPER_CASE constants and Capitalized class names used as receivers."""
    if not name:
        return False
    return name.upper() == name or name[0].isupper()


def is_primitive_type(type_text: str) -> bool:
    return type_text in PRIMITIVE_TYPES


def is_power_of_two(n: int) -> bool:
    return n > 0 and (n & (n - 1)) == 0


def has_bounds_check(context_text: str, index_name: str, array_name: str) -> bool:
    """Search rendered code for an explicit check of ``index_name``."""
    idx = re.escape(index_name)
    arr = re.escape(array_name)
    patterns = (
        rf"(?<![\w$]){idx} >= 0",
        rf"(?<![\w$]){idx} < {arr}\.length",
        rf"{arr}\.length > {idx}(?![\w$])",
        r"checkBounds",
        r"isValidIndex",
    )
    return any(re.search(p, context_text) for p in patterns)
