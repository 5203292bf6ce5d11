from dataclasses import dataclass

import pytest

from srtlive.conf import (
    OUT_OF_RANGE,
    WRONG_TYPE,
    ConfBlock,
    ConfCmd,
    ConfError,
    ConfRegistry,
    block_count,
    find_cmd,
    parse_argv,
    set_bool,
    set_double,
    set_int,
    set_string,
    string_split,
)


class SrtConf(ConfBlock):
    def __init__(self):
        super().__init__()
        self.worker_threads = 0
        self.log_file = ""


class ServerConf(ConfBlock):
    def __init__(self):
        super().__init__()
        self.listen = 0
        self.ratio = 0.0
        self.enabled = False


class AppConf(ConfBlock):
    def __init__(self):
        super().__init__()
        self.app_player = ""


SRT_CMDS = [
    ConfCmd("worker_threads", "count of worker thread", set_int, 1, 100),
    ConfCmd("log_file", "save log file name", set_string, 1, 1023),
]
SERVER_CMDS = [
    ConfCmd("listen", "listen port", set_int, 1, 65535),
    ConfCmd("ratio", "some ratio", set_double, 0, 10),
    ConfCmd("enabled", "switch", set_bool, 0, 1),
]
APP_CMDS = [ConfCmd("app_player", "player app name", set_string, 1, 1023)]


@pytest.fixture
def registry():
    reg = ConfRegistry()
    reg.register("srt", SrtConf, SRT_CMDS)
    reg.register("server", ServerConf, SERVER_CMDS)
    reg.register("app", AppConf, APP_CMDS)
    return reg


@dataclass
class Opts:
    conf_file_name: str = ""
    c_cmd: str = ""
    log_level: str = ""


OPT_CMDS = [
    ConfCmd("c", "conf file name", set_string, 1, 1023, attr="conf_file_name"),
    ConfCmd("s", "cmd: reload", set_string, 1, 1023, attr="c_cmd"),
    ConfCmd("l", "log level", set_string, 1, 1023, attr="log_level"),
]


def test_set_int_stores_leading_number():
    conf = ServerConf()
    set_int("8080abc", SERVER_CMDS[0], conf)
    assert conf.listen == 8080


def test_set_int_out_of_range():
    conf = ServerConf()
    with pytest.raises(ConfError, match=OUT_OF_RANGE):
        set_int("70000", SERVER_CMDS[0], conf)
    with pytest.raises(ConfError, match=OUT_OF_RANGE):
        set_int("abc", SERVER_CMDS[0], conf)
    assert conf.listen == 0


def test_set_string_length_range():
    conf = AppConf()
    set_string("live", APP_CMDS[0], conf)
    assert conf.app_player == "live"
    with pytest.raises(ConfError, match=OUT_OF_RANGE):
        set_string("", APP_CMDS[0], conf)


def test_set_double_and_range():
    conf = ServerConf()
    set_double("2.5", SERVER_CMDS[1], conf)
    assert conf.ratio == 2.5
    with pytest.raises(ConfError, match=OUT_OF_RANGE):
        set_double("11", SERVER_CMDS[1], conf)


def test_set_bool():
    conf = ServerConf()
    set_bool("true", SERVER_CMDS[2], conf)
    assert conf.enabled is True
    set_bool("false", SERVER_CMDS[2], conf)
    assert conf.enabled is False
    with pytest.raises(ConfError, match=WRONG_TYPE):
        set_bool("yes", SERVER_CMDS[2], conf)


def test_find_cmd():
    assert find_cmd("listen", SERVER_CMDS) is SERVER_CMDS[0]
    assert find_cmd("missing", SERVER_CMDS) is None


def test_string_split_drops_empty_pieces():
    assert string_split("a b  c", " ") == ["a", "b", "c"]
    assert string_split("h1:80,h2:80;", ",;") == ["h1:80", "h2:80"]
    assert string_split("", " ") == []


def test_block_count():
    first = ConfBlock("a")
    first.sibling = ConfBlock("b")
    first.sibling.sibling = ConfBlock("c")
    assert block_count(first) == 3
    assert block_count(None) == 0


def test_create_unknown_block(registry):
    with pytest.raises(ConfError):
        registry.create("nope")
    assert registry.create("app").name == "app"


def test_parse_tree(registry):
    text = """
# main conf
srt {
    worker_threads 2;
    log_file logs/error.log ;
    server {
        listen 8080;   # port
        enabled true;
        app {
            app_player live;
        }
        app {
            app_player vod;
        }
    }
    server {
        listen 8081;
    }
}
"""
    root = registry.parse(text.splitlines())
    assert isinstance(root, SrtConf)
    assert root.worker_threads == 2
    assert root.log_file == "logs/error.log"
    servers = list(root.children())
    assert [s.listen for s in servers] == [8080, 8081]
    assert servers[0].enabled is True
    assert [a.app_player for a in servers[0].children()] == ["live", "vod"]
    assert block_count(root.child) == 2


def test_parse_top_level_siblings(registry):
    root = registry.parse(["srt {", "}", "srt {", "worker_threads 3;", "}"])
    assert block_count(root) == 2
    assert root.sibling.worker_threads == 3


def test_parse_removes_tabs(registry):
    root = registry.parse(["srt {", "\tworker_threads 4;\t", "}"])
    assert root.worker_threads == 4


@pytest.mark.parametrize(
    "lines",
    [
        ["srt {", "worker_threads 2;"],
        ["srt {", "}", "}"],
        ["srt {", "unknown 1;", "}"],
        ["nope {", "}"],
        ["srt {", "worker_threads;", "}"],
        ["srt {", "worker_threads 500;", "}"],
        ["srt {", "worker_threads 1", "}"],
        ["srt {", "} x", "}"],
        ["worker_threads 1;"],
        ["{", "}"],
        ["# only a comment"],
    ],
)
def test_parse_errors(registry, lines):
    with pytest.raises(ConfError):
        registry.parse(lines)


def test_key_of_other_block_rejected(registry):
    with pytest.raises(ConfError, match="wrong name='listen'"):
        registry.parse(["srt {", "listen 8080;", "}"])


def test_load_file(registry, tmp_path):
    path = tmp_path / "sls.conf"
    path.write_text("srt {\n    server {\n        listen 9000;\n    }\n}\n", encoding="utf-8")
    root = registry.load(path)
    assert root.child.listen == 9000


def test_load_missing_file(registry, tmp_path):
    with pytest.raises(ConfError):
        registry.load(tmp_path / "missing.conf")


def test_parse_argv_sets_options():
    opts = parse_argv(["-c", "'my.conf'", "-l", '"debug"'], Opts(), OPT_CMDS)
    assert opts.conf_file_name == "my.conf"
    assert opts.log_level == "debug"
    assert opts.c_cmd == ""


def test_parse_argv_help():
    with pytest.raises(ConfError) as info:
        parse_argv(["-h"], Opts(), OPT_CMDS)
    text = str(info.value)
    assert text.startswith("option help info:")
    assert "-c, conf file name, range: 1-1023." in text


@pytest.mark.parametrize(
    "argv",
    [
        ["-x"],
        ["-x", "1"],
        ["c", "file"],
        ["", "file"],
        ["-c", "a.conf", "-s"],
        ["-c", ""],
    ],
)
def test_parse_argv_errors(argv):
    with pytest.raises(ConfError):
        parse_argv(argv, Opts(), OPT_CMDS)