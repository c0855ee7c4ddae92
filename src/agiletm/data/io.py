import csv, json, os, tempfile, yaml
from typing import Any, Callable, Dict, Iterable, List, Union, IO
from pathlib import Path
from agiletm.recovery import CorruptDocumentError, FatalError, StoreIOError
from agiletm.logs import get_logger

log = get_logger("io")

DATA_YAML = 0
DATA_JSON = 1

YAML_SUFFIXES = ('.yml', '.yaml')

def data_type_for(file_path: Union[Path, str]) -> int:
    """Pick the serialization format from the file suffix; JSON unless it looks like YAML."""
    return DATA_YAML if Path(file_path).suffix.lower() in YAML_SUFFIXES else DATA_JSON

def _cleanup(temp_path):
    if temp_path is not None and os.path.exists(temp_path):
        try:
            os.unlink(temp_path)
            log.debug(f"Cleaned up temporary file: {temp_path}")
        except OSError as cleanup_error:
            log.warning(f"Could not clean up temp file {temp_path}: {cleanup_error}")

def _create_dirs(file_path: Path):
    try:
        file_path.parent.mkdir(parents=True, exist_ok=True)
    except (OSError, PermissionError) as e:
        error_msg = f"Cannot create directory {file_path.parent}: {e}"
        log.error(error_msg)
        raise StoreIOError(error_msg, path=file_path) from e

def _atomic_replace(file_path: Path, write: Callable[[IO[str]], None], create_dirs: bool):
    """Run ``write`` against a temp file beside ``file_path`` then swap it into place."""
    temp_path = None

    try:
        if create_dirs:
            _create_dirs(file_path)

        # Temp file in the target directory so os.replace stays on one filesystem
        with tempfile.NamedTemporaryFile(mode='w', encoding='utf-8', newline='', dir=file_path.parent,
                                         prefix=f".{file_path.name}.", suffix='.tmp', delete=False) as temp_file:
            temp_path = temp_file.name
            write(temp_file)
            temp_file.flush()
            os.fsync(temp_file.fileno())

        os.replace(temp_path, file_path)
        log.debug(f"Successfully saved file: {file_path}")

    except (yaml.YAMLError, TypeError, ValueError) as e:
        _cleanup(temp_path)
        error_msg = (f"Data serialization failed for {file_path}. "
                     f"In-memory data may contain non-serializable types: {e}")
        log.critical(error_msg)
        raise FatalError(error_msg) from e

    except StoreIOError:
        _cleanup(temp_path)
        raise

    except OSError as e:
        _cleanup(temp_path)
        error_msg = f"I/O error saving file {file_path}: {e}"
        log.error(error_msg)
        raise StoreIOError(error_msg, path=file_path) from e

def atomic_write(data_type: int, file_path: Union[Path, str], data: Dict[str, Any], create_dirs: bool = False):
    """
    Serialize and save data to a YAML or JSON file using atomic updates.
    """
    file_path = Path(file_path)

    def write(stream):
        if data_type == DATA_YAML:
            yaml.safe_dump(data, stream, default_flow_style=False, sort_keys=False, indent=2, allow_unicode=True)
        elif data_type == DATA_JSON:
            json.dump(data, stream, indent=2, ensure_ascii=False)
            stream.write("\n")
        else:
            raise FatalError("Unsupported Data Format")

    _atomic_replace(file_path, write, create_dirs)
    return True

def write_csv(file_path: Union[Path, str], columns: List[str], rows: Iterable[List[Any]], create_dirs: bool = False):
    """Write a header row and data rows to a CSV file using atomic updates."""
    file_path = Path(file_path)

    def write(stream):
        writer = csv.writer(stream)
        writer.writerow(columns)
        writer.writerows(rows)

    _atomic_replace(file_path, write, create_dirs)
    return True

def load_data_file(file_path: Union[Path, str]) -> Union[None, Dict]:
    """
    Load and parse a JSON or YAML data file.

    Args:
        file_path: Path to the file; the suffix selects the parser

    Returns:
        Parsed data as dict, or None if the file doesn't exist
    """
    file_path = Path(file_path)
    if not file_path.exists():
        return None

    try:
        with open(file_path, 'r', encoding='utf-8') as f:
            if data_type_for(file_path) == DATA_YAML:
                data = yaml.safe_load(f) or {}
            else:
                data = json.load(f)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        # Syntax errors mean the file was corrupted
        raise CorruptDocumentError(f"Syntax error in {file_path}: {e}", path=file_path) from e
    except (OSError, UnicodeDecodeError) as e:
        log.error(f"Failed to read file {file_path}: {e}")
        raise StoreIOError(f"Failed to read file {file_path}: {e}", path=file_path) from e

    if not isinstance(data, dict):
        raise CorruptDocumentError(f"File {file_path} contains invalid data structure", path=file_path)

    log.debug(f"Loaded data file: {file_path}")
    return data
