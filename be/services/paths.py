import os

NOTES_BUCKET = 'notes'
CSS_BUCKET = 'css'
FILES_BUCKET = 'files'


class Paths:
    """Where a stored file lives on disk and the URLs it is served under.

    Files are split into subfolders named after the first ``folder_prefix``
    characters of the filename (no subfolder when the prefix length is 0).
    """

    def __init__(self, base_folder, base_web_url, folder_prefix=0):
        self.base_folder = os.path.abspath(base_folder)
        self.base_web_url = (base_web_url or '').rstrip('/')
        self.folder_prefix = int(folder_prefix or 0)

    @property
    def userfiles_root(self):
        return os.path.join(self.base_folder, 'userfiles')

    @staticmethod
    def bucket(extension):
        if extension == 'html':
            return NOTES_BUCKET
        if extension == 'css':
            return CSS_BUCKET
        return FILES_BUCKET

    def shard(self, filename):
        return filename[:self.folder_prefix] if self.folder_prefix else ''

    def folder_path(self, filename, extension):
        """'notes/d6' etc. No leading or trailing slash."""
        subdir = self.shard(filename)
        bucket = self.bucket(extension)
        return f'{bucket}/{subdir}' if subdir else bucket

    def full_file_path(self, filename, extension):
        folder = os.path.join(self.userfiles_root, *self.folder_path(filename, extension).split('/'))
        return folder, os.path.join(folder, f'{filename}.{extension}')

    def display_url(self, filename, extension):
        """URL given to visitors. Notes sit at the web root without extension."""
        if extension == 'html':
            return f'{self.base_web_url}/{filename}'
        return self.file_url(filename, extension)

    def file_url(self, filename, extension):
        return '/'.join([
            self.base_web_url,
            self.folder_path(filename, extension),
            f'{filename}.{extension}',
        ])
