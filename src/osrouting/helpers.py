import linecache
from os import environ
from pathlib import Path

__pwd = Path(environ.get("PWD", str(Path.cwd())))

log_format = '[{asctime:^s}][{levelname:^8s}]: {message:s}'
log_format_debug = '[{asctime:^s}][{levelname:^8s}][{name:s}|{funcName:s}|{lineno:d}]: {message:s}'
log_datefmt = '%Y/%m/%d|%H:%M:%S (%Z)'


def __relative_location(file_name):
    # Files outside of the project tree are shown with their absolute location
    try:
        return Path(file_name).absolute().relative_to(__pwd)
    except ValueError:
        return Path(file_name)


def __detailed_trace(ex_type, ex_value, ex_tb):
    result = [
        " EXCEPTION {:s}: {:s}".format(str(ex_type), str(ex_value)),
        " Extended stacktrace follows (most recent call last)",
    ]
    while ex_tb:
        frame = ex_tb.tb_frame
        source_file_name = frame.f_code.co_filename

        if "self" in frame.f_locals:
            location = "{:s}.{:s}".format(type(frame.f_locals["self"]).__name__, frame.f_code.co_name)
        else:
            location = frame.f_code.co_name
        result.append("###")
        result.append(
            "File \"{:s}\", line {:d}, in {:s}".format(
                str(__relative_location(source_file_name)), ex_tb.tb_lineno, location
            )
        )
        result.append("    " + linecache.getline(source_file_name, ex_tb.tb_lineno).strip())
        ex_tb = ex_tb.tb_next

    max_len = len(max(result, key=len))
    result = [("-" * max_len) if line == "###" else line for line in result]
    result.insert(0, "-" * max_len)
    result.append("-" * max_len)
    return result


def custom_logging_callback(log_book, level, ex_type, ex_value, ex_tb):
    """
        Logs an exception with an extended stacktrace, one source line per frame.
        Intended to be fed with sys.exc_info().
    """
    log_book.log(level, "\n".join(["\n"] + __detailed_trace(ex_type, ex_value, ex_tb)))


def logger_module_name(file):
    # Files outside of the working directory keep their full location as logger name
    try:
        return str(Path(file).relative_to(__pwd)).replace(str(Path(file).suffix), "")
    except ValueError:
        return str(Path(file)).replace(str(Path(file).suffix), "")
