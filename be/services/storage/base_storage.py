# services/storage/base_storage.py
from abc import ABC, abstractmethod

class BaseStorage(ABC):
    @abstractmethod
    def write_file(self, folder, file_path, contents):
        """Write contents to file_path, creating folder if needed and replacing any prior file."""
        pass

    @abstractmethod
    def delete_file(self, file_path):
        """Best-effort delete. Returns True if a file was removed."""
        pass
