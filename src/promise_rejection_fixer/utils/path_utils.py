"""Path resolution utilities for source files named on the command line."""

from pathlib import Path


def resolve_file_path(path: str | Path, workspace_root: Path) -> Path:
    """Resolve a path relative to workspace_root.

    Absolute paths are resolved as-is; relative paths are resolved against
    workspace_root. The result does not need to exist.

    Raises:
        ValueError: If path is empty or whitespace-only.

    Example:
        >>> from pathlib import Path
        >>> resolve_file_path('app.js', Path('/workspace'))
        PosixPath('/workspace/app.js')
    """
    if isinstance(path, str) and not path.strip():
        raise ValueError("path cannot be empty or whitespace-only")

    path_obj = Path(path)
    if path_obj.is_absolute():
        return path_obj.resolve(strict=False)
    return (workspace_root.resolve() / path_obj).resolve(strict=False)
