import logging
import shutil
import zipfile

logger = logging.getLogger(__name__)

COPY_CHUNK_SIZE = 64 * 1024


class _ChunkSink:
    """Write-only file object collecting zip output between yields.

    It has no tell/seek, so zipfile writes entries in streaming mode.
    """

    def __init__(self):
        self._chunks = []

    def write(self, data):
        self._chunks.append(bytes(data))
        return len(data)

    def flush(self):
        pass

    def drain(self):
        chunks, self._chunks = self._chunks, []
        return b"".join(chunks)


def archive_entry_name(item):
    return f"{item.position + 1}_{item.original_filename}"


def iter_order_archive(items, store):
    """Yield a ZIP of the order's photos chunk by chunk, one entry per photo.

    Photos missing from storage are logged and left out.
    """
    sink = _ChunkSink()
    with zipfile.ZipFile(sink, mode="w", compression=zipfile.ZIP_DEFLATED, compresslevel=9) as archive:
        for item in items:
            try:
                source = store.open(item.file_path)
            except OSError:
                logger.warning("Skipping missing photo %s for order %s", item.file_path, item.order_id)
                continue
            with source, archive.open(archive_entry_name(item), mode="w") as entry:
                shutil.copyfileobj(source, entry, COPY_CHUNK_SIZE)
            yield sink.drain()
    yield sink.drain()
