"""Name conversions and text escaping for generated TypeScript."""

import re


def pascal_case(name: str) -> str:
    """Upper-case the first character, keeping the rest (getUser -> GetUser)."""
    if not name:
        return name
    return name[:1].upper() + name[1:]


def enum_member_name(value: str) -> str:
    """Convert an enum value to a PascalCase member name (SUPER_ADMIN -> SuperAdmin)."""
    words = [w for w in re.split(r"[^0-9A-Za-z]+", value) if w]
    if not words:
        return value
    if len(words) == 1 and not value.isupper():
        return pascal_case(words[0])
    return "".join(word[:1].upper() + word[1:].lower() for word in words)


def safe_comment(text: str) -> str:
    """Make text safe inside a /** */ block comment."""
    if not text:
        return ""
    return text.replace("*/", "*\\/").strip()


def jsdoc(text: str | None, indent: str = "") -> str:
    """Render a description as a JSDoc comment, or nothing when there is none."""
    if not text:
        return ""
    lines = safe_comment(text).replace("\r", "").split("\n")
    if len(lines) == 1:
        return f"{indent}/** {lines[0]} */\n"
    body = "\n".join(f"{indent} * {line}".rstrip() for line in lines)
    return f"{indent}/**\n{body}\n{indent} */\n"
