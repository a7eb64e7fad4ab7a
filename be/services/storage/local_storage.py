# services/storage/local_storage.py
import logging
import os
import tempfile

from services.storage.base_storage import BaseStorage

logger = logging.getLogger(__name__)


class LocalStorage(BaseStorage):
    def write_file(self, folder, file_path, contents):
        os.makedirs(folder, exist_ok=True)
        # 先写临时文件再原子替换，读者不会看到写了一半的文件
        fd, tmp_path = tempfile.mkstemp(dir=folder, prefix='.upload-')
        try:
            with os.fdopen(fd, 'wb') as f:
                f.write(contents)
            os.chmod(tmp_path, 0o644)
            os.replace(tmp_path, file_path)
        except OSError:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise
        return file_path

    def delete_file(self, file_path):
        try:
            os.remove(file_path)
        except FileNotFoundError:
            return False
        except OSError:
            logger.warning('Could not delete %s', file_path, exc_info=True)
            return False
        return True
