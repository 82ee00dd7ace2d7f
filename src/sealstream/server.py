"""HTTP front end: upload a file and a password, download the result.

Both endpoints stream. The upload is spooled to a temporary file and the
response body is produced from it chunk by chunk, so neither side is held in
memory.
"""
from __future__ import annotations

import itertools
import logging
import tempfile
from pathlib import PurePath
from typing import IO, Any, Iterator, Mapping

from flask import Flask, Response, abort, current_app, request, stream_with_context
from werkzeug.utils import secure_filename

from sealstream.container.core import default_decrypt_output, default_encrypt_output
from sealstream.container.stream import iter_decrypt, iter_encrypt
from sealstream.crypto.kdf import Pbkdf2Params, recommended_params
from sealstream.errors import AuthFailure, ContainerFormatError, SealStreamError

logger = logging.getLogger(__name__)

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 8080

INDEX_HTML = """<!doctype html>
<html lang="en">
<head>
  <meta charset="utf-8">
  <title>sealstream</title>
</head>
<body>
  <h1>sealstream</h1>
  <form method="post" enctype="multipart/form-data">
    <p><input type="file" name="file" required></p>
    <p><input type="password" name="password" placeholder="Password" required></p>
    <p>
      <button type="submit" formaction="/encrypt">Encrypt</button>
      <button type="submit" formaction="/decrypt">Decrypt</button>
    </p>
  </form>
</body>
</html>
"""


def _plain_error(message: str, status: int = 400) -> Response:
    return Response(message + "\n", status=status, mimetype="text/plain")


def _read_upload() -> tuple[IO[bytes], str, str]:
    """Validate the form and copy the upload into a file this response owns.

    Werkzeug closes ``request.files`` when the request context is torn down,
    which happens before a streamed body is sent.
    """

    upload = request.files.get("file")
    filename = secure_filename(upload.filename or "") if upload is not None else ""
    if upload is None or not filename:
        abort(_plain_error("Invalid file"))
    password = request.form.get("password", "")
    if not password:
        abort(_plain_error("Password required"))

    spool = tempfile.TemporaryFile()
    try:
        upload.save(spool)
        spool.seek(0)
    except BaseException:
        spool.close()
        raise
    return spool, filename, password


def _kdf_params() -> Pbkdf2Params:
    return current_app.extensions["sealstream"]["kdf_params"]


def _logged(chunks: Iterator[bytes], action: str) -> Iterator[bytes]:
    # Headers are already sent at this point; the only thing left to do is
    # record the failure and cut the body short.
    try:
        yield from chunks
    except SealStreamError:
        logger.exception("%s failed after streaming started", action)


def _download(chunks: Iterator[bytes], spool: IO[bytes], filename: str, action: str) -> Response:
    response = Response(stream_with_context(_logged(chunks, action)), mimetype="application/octet-stream")
    response.headers.set("Content-Disposition", "attachment", filename=filename)
    response.call_on_close(spool.close)
    return response


def encrypt_upload() -> Response:
    spool, filename, password = _read_upload()
    frames = iter_encrypt(spool, password, kdf_params=_kdf_params())
    return _download(frames, spool, default_encrypt_output(PurePath(filename)).name, "encryption")


def decrypt_upload() -> Response:
    spool, filename, password = _read_upload()
    chunks = iter_decrypt(spool, password, kdf_params=_kdf_params())

    # Pull the first chunk before any header goes out so a wrong password or a
    # malformed container still gets a proper status code.
    try:
        first = list(itertools.islice(chunks, 1))
    except AuthFailure:
        spool.close()
        logger.info("decryption rejected for %s: authentication failed", filename)
        return _plain_error("Decryption failed: wrong password or corrupted file")
    except ContainerFormatError as exc:
        spool.close()
        logger.info("decryption rejected for %s: %s", filename, exc)
        return _plain_error("Decryption failed: invalid or truncated container")

    body = itertools.chain(first, chunks)
    return _download(body, spool, default_decrypt_output(PurePath(filename)).name, "decryption")


def index() -> Response:
    return Response(INDEX_HTML, mimetype="text/html")


def create_app(config: Mapping[str, Any] | None = None, *, kdf_params: Pbkdf2Params | None = None) -> Flask:
    """Build the Flask application.

    Settings come from defaults, then ``SEALSTREAM_*`` environment variables,
    then ``config``. The PBKDF2 iteration count is not a setting: containers
    are always written with :func:`recommended_params`. ``kdf_params`` exists
    for tests only.
    """

    app = Flask(__name__)
    app.config.from_mapping(MAX_CONTENT_LENGTH=None)
    app.config.from_prefixed_env("SEALSTREAM")
    if config:
        app.config.from_mapping(config)
    app.extensions["sealstream"] = {"kdf_params": kdf_params or recommended_params()}

    app.add_url_rule("/", "index", index, methods=["GET"])
    app.add_url_rule("/encrypt", "encrypt", encrypt_upload, methods=["POST"])
    app.add_url_rule("/decrypt", "decrypt", decrypt_upload, methods=["POST"])
    return app


def run_server(host: str = DEFAULT_HOST, port: int = DEFAULT_PORT) -> None:
    logger.info("server listening on %s:%d", host, port)
    create_app().run(host=host, port=port, threaded=True)


__all__ = ["DEFAULT_HOST", "DEFAULT_PORT", "create_app", "run_server"]
