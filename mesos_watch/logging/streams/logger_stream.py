import io
import os
import pathlib
import sys
import threading
from typing import (
    Callable,
    Dict,
    TextIO,
    TypeVar,
)

import msgspec

from mesos_watch.logging.config import LoggingConfig, StreamType
from mesos_watch.logging.models import Entry, Log, utc_timestamp

T = TypeVar('T', bound=Entry)


class LoggerStream:
    def __init__(
        self,
        name: str | None = None,
        template: str | None = None,
        filename: str | None = None,
        directory: str | None = None,
    ) -> None:
        if name is None:
            name = "default"

        self._name = name
        self._default_template = template
        self._default_logfile = filename
        self._default_log_directory = directory

        self._config = LoggingConfig()
        self._files: Dict[str, io.BufferedWriter] = {}
        self._file_lock = threading.Lock()
        self._streams: Dict[StreamType, TextIO] = {}
        self._closed = False

    @property
    def name(self):
        return self._name

    def set_stream(self, stream_type: StreamType, stream: TextIO):
        self._streams[stream_type] = stream

    def log(
        self,
        entry: T | Log[T],
        template: str | None = None,
        path: str | None = None,
        filter: Callable[[T], bool] | None = None,
    ):
        if self._closed:
            return

        filename: str | None = None
        directory: str | None = None

        if path:
            logfile_path = pathlib.Path(path)
            is_logfile = len(logfile_path.suffix) > 0

            filename = logfile_path.name if is_logfile else None
            directory = str(logfile_path.parent.absolute()) if is_logfile else str(logfile_path.absolute())

        if template is None:
            template = self._default_template

        if filename is None:
            filename = self._default_logfile

        if directory is None:
            directory = self._default_log_directory

        if filename or directory:
            self._log_to_file(
                entry,
                filename=filename,
                directory=directory,
                filter=filter,
            )

        else:
            self._log(
                entry,
                template=template,
                filter=filter,
            )

    def _log(
        self,
        entry_or_log: T | Log[T],
        template: str | None = None,
        filter: Callable[[T], bool] | None = None,
    ):
        entry = entry_or_log.entry if isinstance(entry_or_log, Log) else entry_or_log

        if self._config.enabled(self._name, entry.level) is False:
            return

        if filter and filter(entry) is False:
            return

        if template is None:
            template = "{timestamp} - {level} - {thread_id} - {filename}:{function_name}.{line_number} - {message}"

        if isinstance(entry_or_log, Log):
            log_file = entry_or_log.filename
            line_number = entry_or_log.line_number
            function_name = entry_or_log.function_name

        else:
            log_file, line_number, function_name = self._find_caller()

        stream = self._get_stream(self._config.output)

        try:
            stream.write(
                entry.to_template(
                    template,
                    context={
                        "filename": log_file,
                        "function_name": function_name,
                        "line_number": line_number,
                        "thread_id": threading.get_native_id(),
                        "timestamp": utc_timestamp(),
                    },
                )
                + "\n"
            )
            stream.flush()

        except (KeyError, IndexError, ValueError) as err:
            self._write_error(entry, err, log_file, function_name, line_number)

    def _log_to_file(
        self,
        entry_or_log: T | Log[T],
        filename: str | None = None,
        directory: str | None = None,
        filter: Callable[[T], bool] | None = None,
    ):
        entry = entry_or_log.entry if isinstance(entry_or_log, Log) else entry_or_log

        if self._config.enabled(self._name, entry.level) is False:
            return

        if filter and filter(entry) is False:
            return

        if filename is None:
            filename = "logs.json"

        if self._config.directory:
            directory = self._config.directory

        elif directory is None:
            directory = os.path.join(os.getcwd(), "logs")

        logfile_path = self._to_logfile_path(filename, directory)

        if isinstance(entry_or_log, Log):
            log = entry_or_log

        else:
            log_file, line_number, function_name = self._find_caller()
            log = Log(
                entry=entry,
                filename=log_file,
                function_name=function_name,
                line_number=line_number,
            )

        with self._file_lock:
            try:
                logfile = self._files.get(logfile_path)
                if logfile is None or logfile.closed:
                    logfile = self._open_file(logfile_path)

                logfile.write(msgspec.json.encode(log) + b"\n")
                logfile.flush()

            except OSError as err:
                self._write_error(
                    entry,
                    err,
                    log.filename,
                    log.function_name,
                    log.line_number,
                )

    def _to_logfile_path(self, filename: str, directory: str):
        filename_path = pathlib.Path(filename)

        assert (
            filename_path.suffix == ".json"
        ), "Err. - file must be JSON file for logs."

        return os.path.join(directory, filename_path)

    def _open_file(self, logfile_path: str):
        resolved_path = pathlib.Path(logfile_path).absolute().resolve()
        resolved_path.parent.mkdir(parents=True, exist_ok=True)

        logfile = open(str(resolved_path), "ab+")
        self._files[logfile_path] = logfile

        return logfile

    def _get_stream(self, stream_type: StreamType) -> TextIO:
        if stream := self._streams.get(stream_type):
            return stream

        return sys.stdout if stream_type == StreamType.STDOUT else sys.stderr

    def _write_error(
        self,
        entry: Entry,
        err: Exception,
        log_file: str,
        function_name: str,
        line_number: int,
    ):
        error_template = "{timestamp} - {level} - {thread_id}.{filename}:{function_name}.{line_number} - {error}"

        stderr = self._get_stream(StreamType.STDERR)
        stderr.write(
            entry.to_template(
                error_template,
                context={
                    "filename": log_file,
                    "function_name": function_name,
                    "line_number": line_number,
                    "error": str(err),
                    "thread_id": threading.get_native_id(),
                    "timestamp": utc_timestamp(),
                },
            )
            + "\n"
        )

    def _find_caller(self):
        """
        Find the stack frame of the caller so that we can note the source
        file name, line number and function name.
        """
        frame = sys._getframe(3)
        code = frame.f_code

        return (
            code.co_filename,
            frame.f_lineno,
            code.co_name,
        )

    def close(self):
        with self._file_lock:
            for logfile in self._files.values():
                if logfile.closed is False:
                    logfile.close()

            self._files.clear()

        self._closed = True
