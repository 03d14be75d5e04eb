import fnmatch

NON_CODE_EXTENSIONS = {
    ".png",
    ".jpg",
    ".jpeg",
    ".gif",
    ".svg",
    ".ico",
    ".webp",
    ".bmp",
    ".pdf",
    ".woff",
    ".woff2",
    ".ttf",
    ".eot",
    ".otf",
    ".mp4",
    ".mp3",
    ".wav",
    ".zip",
    ".tar",
    ".gz",
    ".7z",
    ".lock",  # e.g. yarn.lock, poetry.lock
}


def is_code_file(file_name: str) -> bool:
    return not any(file_name.lower().endswith(ext) for ext in NON_CODE_EXTENSIONS)


def _matches(path: str, pattern: str) -> bool:
    """Match a repository-relative path against one glob pattern.

    Supports:
    - fnmatch globs on the full path: "src/generated/*.py", "node_modules/**"
    - a leading "**/" that also matches at the root: "**/*.ts" matches "index.ts"
    - fnmatch globs on the basename: "*.lock", "*.min.js"
    - directory names/prefixes: "migrations/", "dist/**" (any file within that tree)
    """
    if fnmatch.fnmatch(path, pattern):
        return True
    if pattern.startswith("**/") and fnmatch.fnmatch(path, pattern[3:]):
        return True
    if "/" not in pattern and fnmatch.fnmatch(path.rsplit("/", 1)[-1], pattern):
        return True
    directory = pattern.removesuffix("/**").rstrip("/")
    if directory and not any(ch in directory for ch in "*?["):
        prefix = directory + "/"
        if path.startswith(prefix) or ("/" + prefix) in path:
            return True
    return False


def is_excluded(path: str, patterns: list[str]) -> bool:
    return any(_matches(path, p) for p in patterns)


def is_included(path: str, patterns: list[str]) -> bool:
    """An empty include list includes everything."""
    if not patterns:
        return True
    return any(_matches(path, p) for p in patterns)
