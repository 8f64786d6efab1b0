"""Read LeetCode session cookies from locally installed browsers.

Chromium-family browsers (Chrome, Chromium, Brave, Edge) store cookies in an
encrypted SQLite database; Firefox stores them in plain text. Lookups are
scoped to a single domain.
"""

import hashlib
import logging
import os
import shutil
import sqlite3
import subprocess
import sys
import tempfile
from pathlib import Path
from typing import Optional

from Crypto.Cipher import AES

from lctui.exceptions import CookieError

logger = logging.getLogger(__name__)

DEFAULT_DOMAIN = "leetcode.com"
SESSION_COOKIE = "LEETCODE_SESSION"
CSRF_COOKIE = "csrftoken"

# (browser name, keyring label, Linux config dir, macOS support dir)
CHROMIUM_BROWSERS = [
    ("Chrome", "Chrome Safe Storage", ".config/google-chrome", "Library/Application Support/Google/Chrome"),
    ("Chromium", "Chromium Safe Storage", ".config/chromium", "Library/Application Support/Chromium"),
    ("Brave", "Brave Safe Storage", ".config/BraveSoftware/Brave-Browser", "Library/Application Support/BraveSoftware/Brave-Browser"),
    ("Edge", "Microsoft Edge Safe Storage", ".config/microsoft-edge", "Library/Application Support/Microsoft Edge"),
]

FIREFOX_DIRS = [".mozilla/firefox", "Library/Application Support/Firefox/Profiles"]


def _get_manual_cookies() -> tuple[str, str] | None:
    """Check for manually configured cookies in the environment."""
    session = os.environ.get("LEETCODE_SESSION")
    csrf = os.environ.get("LEETCODE_CSRF")
    if session and csrf:
        return session, csrf
    return None


def _chromium_cookie_paths(config_dir: Path) -> list[Path]:
    if not config_dir.exists():
        return []
    candidates = []
    for profile in sorted(config_dir.iterdir()):
        if not profile.is_dir() or not (profile.name == "Default" or profile.name.startswith("Profile")):
            continue
        for relative in ("Network/Cookies", "Cookies"):
            path = profile / relative
            if path.exists():
                candidates.append(path)
                break
    return candidates


def _firefox_cookie_paths(home: Path) -> list[Path]:
    paths = []
    for relative in FIREFOX_DIRS:
        root = home / relative
        if root.exists():
            paths.extend(sorted(root.glob("*/cookies.sqlite")))
    return paths


def _derive_encryption_key(password: bytes, iterations: int = 1) -> bytes:
    return hashlib.pbkdf2_hmac(
        hash_name="sha1",
        password=password,
        salt=b"saltysalt",
        iterations=iterations,
        dklen=16,
    )


def _get_keyring_password(label: str) -> bytes | None:
    """Look up the browser's Safe Storage secret in the desktop keyring."""
    try:
        import secretstorage

        connection = secretstorage.dbus_init()
        collection = secretstorage.get_default_collection(connection)

        if collection.is_locked():
            collection.unlock()

        for item in collection.get_all_items():
            if item.get_label() == label:
                return item.get_secret()
    except Exception as e:
        logger.debug("Keyring lookup for %s failed: %s", label, e)

    return None


def _get_keychain_password(label: str) -> bytes | None:
    """Look up the browser's Safe Storage secret in the macOS keychain."""
    try:
        result = subprocess.run(
            ["security", "find-generic-password", "-w", "-s", label],
            capture_output=True,
            text=True,
            timeout=10,
        )
    except (OSError, subprocess.TimeoutExpired) as e:
        logger.debug("Keychain lookup for %s failed: %s", label, e)
        return None
    if result.returncode != 0:
        return None
    return result.stdout.strip().encode("utf-8")


def _chromium_keys(label: str) -> dict[bytes, bytes]:
    """Decryption keys by cookie version prefix."""
    if sys.platform == "darwin":
        password = _get_keychain_password(label)
        if password is None:
            return {}
        key = _derive_encryption_key(password, iterations=1003)
        return {b"v10": key}

    keys = {b"v10": _derive_encryption_key(b"peanuts")}
    password = _get_keyring_password(label)
    if password:
        keys[b"v11"] = _derive_encryption_key(password)
    return keys


def _decrypt_cookie_value(encrypted_value: bytes, keys: dict[bytes, bytes]) -> str | None:
    prefix = encrypted_value[:3]
    if prefix not in (b"v10", b"v11"):
        return encrypted_value.decode("utf-8", errors="ignore")

    key = keys.get(prefix)
    payload = encrypted_value[3:]
    if key is None or len(payload) < 16 or len(payload) % 16:
        return None

    cipher = AES.new(key, AES.MODE_CBC, b" " * 16)
    decrypted = _remove_pkcs7_padding(cipher.decrypt(payload))
    try:
        return decrypted.decode("utf-8")
    except UnicodeDecodeError:
        # Newer Chromium prepends a SHA-256 digest of the host to the value.
        try:
            return decrypted[32:].decode("utf-8")
        except UnicodeDecodeError:
            return None


def _remove_pkcs7_padding(data: bytes) -> bytes:
    if not data:
        return data

    padding_length = data[-1]

    if padding_length > 16 or padding_length == 0:
        return data

    if data[-padding_length:] != bytes([padding_length]) * padding_length:
        return data

    return data[:-padding_length]


def _query_copy(db_path: Path, query: str, params: tuple) -> list[tuple]:
    """Run a query against a copy of a browser database, which may be locked."""
    with tempfile.NamedTemporaryFile(delete=False, suffix=".db") as tmp_file:
        tmp_path = Path(tmp_file.name)

    try:
        shutil.copy2(db_path, tmp_path)
        conn = sqlite3.connect(tmp_path)
        try:
            return conn.execute(query, params).fetchall()
        finally:
            conn.close()
    except (OSError, sqlite3.Error) as e:
        raise CookieError(f"Cannot read cookie database {db_path}: {e}") from e
    finally:
        tmp_path.unlink(missing_ok=True)


def _read_chromium_cookies(cookie_path: Path, keys: dict[bytes, bytes], domain: str) -> dict[str, str]:
    rows = _query_copy(
        cookie_path,
        "SELECT name, value, encrypted_value FROM cookies WHERE host_key LIKE ? AND name IN (?, ?)",
        (f"%{domain}", SESSION_COOKIE, CSRF_COOKIE),
    )
    cookies: dict[str, str] = {}
    for name, value, encrypted_value in rows:
        if value:
            cookies[name] = value
        elif encrypted_value:
            decrypted = _decrypt_cookie_value(encrypted_value, keys)
            if decrypted:
                cookies[name] = decrypted
    return cookies


def _read_firefox_cookies(cookie_path: Path, domain: str) -> dict[str, str]:
    rows = _query_copy(
        cookie_path,
        "SELECT name, value FROM moz_cookies WHERE host LIKE ? AND name IN (?, ?)",
        (f"%{domain}", SESSION_COOKIE, CSRF_COOKIE),
    )
    return {name: value for name, value in rows if value}


def _browser_sources(home: Path) -> list[tuple[str, Path, Optional[str]]]:
    """Candidate cookie stores as (browser, path, keyring label or None for Firefox)."""
    sources: list[tuple[str, Path, Optional[str]]] = []
    for browser, label, linux_dir, mac_dir in CHROMIUM_BROWSERS:
        config_dir = home / (mac_dir if sys.platform == "darwin" else linux_dir)
        for path in _chromium_cookie_paths(config_dir):
            sources.append((browser, path, label))
    for path in _firefox_cookie_paths(home):
        sources.append(("Firefox", path, None))
    return sources


def extract_cookies(domain: str = DEFAULT_DOMAIN, home: Path | None = None) -> tuple[str, str]:
    """Return (session token, csrf token) for the domain from the first browser that has both."""
    manual = _get_manual_cookies()
    if manual:
        return manual

    sources = _browser_sources(home or Path.home())
    if not sources:
        raise CookieError("No supported browser cookie store found (Chrome, Chromium, Brave, Edge, Firefox).")

    errors: list[str] = []
    for browser, path, label in sources:
        try:
            if label is None:
                cookies = _read_firefox_cookies(path, domain)
            else:
                cookies = _read_chromium_cookies(path, _chromium_keys(label), domain)
        except CookieError as e:
            errors.append(f"{browser}: {e.message}")
            continue

        session = cookies.get(SESSION_COOKIE)
        csrf = cookies.get(CSRF_COOKIE)
        if session and csrf:
            logger.info("Found %s cookies in %s (%s)", domain, browser, path)
            return session, csrf

    if errors:
        raise CookieError("Could not read browser cookies:\n" + "\n".join(errors))
    raise CookieError(f"Could not find LeetCode cookies.\n\nLog into {domain} in your browser, then retry.")
