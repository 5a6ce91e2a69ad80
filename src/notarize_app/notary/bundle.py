"""Bundle identifier resolution.

The notary service needs an identifier for the product being submitted. An
explicitly configured value always wins; otherwise the identifier is read from
the bundle's embedded ``Contents/Info.plist``.
"""

import plistlib
from pathlib import Path
from xml.parsers.expat import ExpatError

from notarize_app.exceptions import ConfigurationError

INFO_PLIST = Path("Contents") / "Info.plist"


def read_bundle_identifier(product_path: Path) -> str | None:
    """Read CFBundleIdentifier from a product's Info.plist.

    Args:
        product_path: Path to the .app bundle

    Returns:
        The identifier, or None if the plist or the key is missing

    Raises:
        ConfigurationError: If the plist exists but cannot be parsed
    """
    plist_path = product_path / INFO_PLIST
    if not plist_path.is_file():
        return None

    try:
        with open(plist_path, "rb") as f:
            info = plistlib.load(f)
    except (plistlib.InvalidFileException, ExpatError, ValueError) as e:
        raise ConfigurationError(f"Could not parse {plist_path}: {e}") from e

    if not isinstance(info, dict):
        return None
    value = info.get("CFBundleIdentifier")
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def resolve_bundle_id(explicit: str | None, product_path: Path) -> str:
    """Resolve the bundle identifier to submit with.

    Args:
        explicit: Configured identifier override (empty/None if unset)
        product_path: Path to the .app bundle

    Returns:
        Non-empty bundle identifier

    Raises:
        ConfigurationError: If neither source yields an identifier
    """
    if explicit and explicit.strip():
        return explicit.strip()

    bundle_id = read_bundle_identifier(product_path)
    if bundle_id is None:
        raise ConfigurationError(
            "No primary bundle id set and could not determine bundle identifier "
            f"from {product_path / INFO_PLIST}"
        )
    return bundle_id
