import logging
from threading import Lock

from clinic.core import config
from clinic.database import build_engine
from clinic.repositories.base import ClinicRepository, DeletePolicy
from clinic.repositories.file_repository import FileClinicRepository
from clinic.repositories.sql_repository import SqlClinicRepository


logger = logging.getLogger(__name__)

DEFAULT_DELETE_POLICIES = {
    'server': DeletePolicy.BLOCK,
    'embedded': DeletePolicy.CASCADE,
    'files': DeletePolicy.CASCADE,
}

_repository_lock = Lock()
_repository: ClinicRepository | None = None


def build_repository(
    backend: str,
    delete_policy: str | None = None,
    *,
    database_url: str | None = None,
    sqlite_path: str | None = None,
    data_dir: str | None = None,
) -> ClinicRepository:
    backend = backend.strip().lower()
    if backend not in DEFAULT_DELETE_POLICIES:
        raise ValueError(f'Unknown storage backend: {backend}')

    policy = DeletePolicy(delete_policy) if delete_policy else DEFAULT_DELETE_POLICIES[backend]

    if backend == 'server':
        repository = SqlClinicRepository(build_engine(database_url or config.DATABASE_URL), policy)
    elif backend == 'embedded':
        repository = SqlClinicRepository(build_engine(f'sqlite:///{sqlite_path or config.SQLITE_PATH}'), policy)
    else:
        repository = FileClinicRepository(data_dir or config.DATA_DIR, policy)

    logger.info('Using %s storage backend with %s delete policy.', backend, policy.value)
    return repository


def get_repository() -> ClinicRepository:
    global _repository

    if _repository is not None:
        return _repository

    with _repository_lock:
        if _repository is None:
            config.validate_runtime_config()
            repository = build_repository(config.STORAGE_BACKEND, config.DELETE_POLICY)
            repository.initialize(seed=config.SEED_SAMPLE_DATA)
            _repository = repository

    return _repository


def reset_repository() -> None:
    global _repository

    with _repository_lock:
        _repository = None
