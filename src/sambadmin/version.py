import subprocess
from importlib import metadata

# Overwritten by the release process
__version__ = "dev"


def get_version() -> str:
    """
    Returns the version of sambadmin.
    Priorities:
    1. Explicitly set __version__ (if not "dev")
    2. Installed distribution metadata
    3. Git commit hash (if inside a git checkout)
    4. Fallback "dev"
    """
    if __version__ != "dev":
        return __version__

    try:
        return metadata.version("sambadmin")
    except metadata.PackageNotFoundError:
        pass

    try:
        cmd = ["git", "rev-parse", "--short", "HEAD"]
        result = subprocess.run(cmd, capture_output=True, text=True, check=True)
        return result.stdout.strip()
    except (subprocess.CalledProcessError, FileNotFoundError):
        pass

    return "dev"
