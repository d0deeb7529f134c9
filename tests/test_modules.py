import http.server
import os
import random
import signal
import socket
import subprocess
import sys
import threading
import time
import urllib.error
import urllib.request

import pytest

from victoria import Interpreter, VictoriaError, parse_program, run_program
from victoria.objects import Integer, String
from victoria.std.modules import VERSION
from victoria.std.network import match_route
from victoria.std.numeric import populate_math_module


def run(source):
    return run_program(source).inspect()


def error_of(source):
    with pytest.raises(VictoriaError) as info:
        run_program(source)
    return info.value.diagnostic


@pytest.fixture
def utc(monkeypatch):
    monkeypatch.setenv("TZ", "UTC")
    time.tzset()
    yield
    monkeypatch.undo()
    time.tzset()


###############################################################################
# math
###############################################################################

def test_math_functions():
    assert run('include "math"; math.sqrt(16)') == "4"
    assert run('include "math"; math.pow(2, 10)') == "1024"
    assert run('include "math"; [math.abs(-3), math.floor(2.7), math.ceil(2.1)]') == "[3, 2, 3]"
    assert run('include "math"; [math.round(2.5), math.round(-2.5)]') == "[3, -3]"
    assert run('include "math"; [math.min(3, 1, 2), math.max(1, 2.5)]') == "[1, 2.5]"
    assert run('include "math"; math.pi > 3.14') == "true"


def test_math_domain_error():
    diag = error_of('include "math"; math.sqrt(-1);')
    assert diag.code == "E0022"
    assert diag.message.startswith("math: ")


def test_math_argument_errors():
    assert error_of('include "math"; math.sqrt("x");').code == "E0014"
    assert error_of('include "math"; math.min(1);').code == "E0010"


def test_math_random_is_reproducible_with_a_seeded_generator():
    module = populate_math_module(random.Random(1))
    rand = module.get(String("random"))
    expected = random.Random(1)
    assert rand.fn([Integer(10)]).value == expected.randrange(10)
    assert rand.fn([Integer(5), Integer(6)]).value == expected.randint(5, 6)
    assert 0 <= rand.fn([]).value < 1


###############################################################################
# json
###############################################################################

def test_json_parse():
    assert run('include "json"; let d = json.parse(`{"a": [1, 2.0, true], "b": null}`); [d.a, d.b]') == (
        "[[1, 2, true], null]")
    assert error_of('include "json"; json.parse("{");').code == "E0022"


def test_json_stringify_sorts_keys():
    assert run('include "json"; json.stringify({"b": 1, "a": [1, "x"]})') == '{"a":[1,"x"],"b":1}'
    assert run('include "json"; json.stringify({"a": 1}, 2)') == '{\n  "a": 1\n}'
    assert run('include "json"; json.stringify(1.5)') == "1.5"


def test_json_valid():
    assert run('include "json"; [json.valid("[1]"), json.valid("[1")]') == "[true, false]"


###############################################################################
# path
###############################################################################

def test_path_functions():
    assert run('include "path"; path.join("a", "b", "../c.txt")') == "a/c.txt"
    assert run('include "path"; path.base("/x/y.vc")') == "y.vc"
    assert run('include "path"; path.dir("/x/y.vc")') == "/x"
    assert run('include "path"; path.ext("y.tar.gz")') == ".gz"
    assert run('include "path"; [path.base(""), path.dir("file")]') == "[., .]"


###############################################################################
# time
###############################################################################

def test_time_parse_reads_text_as_utc():
    assert run('include "time"; time.parse("2024-01-02 03:04:05")') == "1704164645"
    assert run('include "time"; time.parse("02/01/2024", "DD/MM/YYYY")') == "1704153600"
    assert error_of('include "time"; time.parse("yesterday");').code == "E0022"


@pytest.mark.skipif(not hasattr(time, "tzset"), reason="needs time.tzset")
def test_time_format_uses_local_time(utc):
    assert run('include "time"; time.format(1704164645)') == "2024-01-02 03:04:05"
    assert run('include "time"; time.format(1704164645, "YYYY/MM/DD hh:mm A")') == "2024/01/02 03:04 AM"
    assert run('include "time"; [time.year(1704164645), time.month(1704164645), time.weekday(1704164645)]') == (
        "[2024, 1, 2]")


def test_time_now_is_current():
    before = int(time.time())
    now = run_program('include "time"; time.now()').value
    assert before <= now <= int(time.time())


###############################################################################
# os and std
###############################################################################

def test_os_file_round_trip(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    source = """
    include "os";
    os.writeFile("note.txt", "hello");
    let text = os.readFile("note.txt");
    let existed = os.exists("note.txt");
    os.remove("note.txt");
    [text, existed, os.exists("note.txt")]
    """
    assert run(source) == "[hello, true, false]"
    assert (tmp_path / "note.txt").exists() is False


def test_os_errors_are_catchable(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    assert error_of('include "os"; os.readFile("missing.txt");').code == "E0022"
    assert run('include "os"; try { os.readFile("missing.txt") } catch (e) { "no file" }') == "no file"


def test_os_environment(monkeypatch):
    monkeypatch.setenv("VICTORIA_TEST_VALUE", "42")
    assert run('include "os"; os.env("VICTORIA_TEST_VALUE")') == "42"


def test_std_module():
    assert run('include "std"; std.version') == VERSION
    assert run('include "std"; std.upper("a")') == "A"


###############################################################################
# File modules
###############################################################################

def test_include_a_source_file(tmp_path, monkeypatch):
    (tmp_path / "helpers.vc").write_text(
        'define double(x) { x * 2 }\nlet greeting = "hi";\n', encoding="utf-8")
    monkeypatch.chdir(tmp_path)
    assert run('include "helpers"; [helpers.double(4), helpers.greeting]') == "[8, hi]"


def test_include_from_victoria_modules(tmp_path, monkeypatch):
    package = tmp_path / "victoria_modules" / "shapes"
    package.mkdir(parents=True)
    (package / "index.vc").write_text("define square(n) { n * n }\n", encoding="utf-8")
    monkeypatch.chdir(tmp_path)
    assert run('include "shapes"; shapes.square(7)') == "49"


def test_errors_inside_an_included_file(tmp_path, monkeypatch):
    (tmp_path / "broken.vc").write_text("let x = 1 / 0;\n", encoding="utf-8")
    monkeypatch.chdir(tmp_path)
    diag = error_of('include "broken";')
    assert diag.code == "E0007"
    assert diag.location.filename == "broken.vc"


def test_missing_module(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    diag = error_of('include "nowhere";')
    assert diag.code == "E0021"
    assert "nowhere" in diag.message
    assert diag.location.line == 1


def test_included_module_binding_is_a_hash():
    with Interpreter() as interp:
        interp.run(parse_program('include ("math", "json");'))
        assert interp.global_env.get("math").type == "HASH"
        assert interp.global_env.get("json").type == "HASH"


def test_os_user_reports_the_current_account():
    pwd = pytest.importorskip("pwd")
    entry = pwd.getpwuid(os.getuid())
    assert run('include "os"; let u = os.user(); [u.username, u.home, u.uid]') == (
        f"[{entry.pw_name}, {entry.pw_dir}, {entry.pw_uid}]")


@pytest.mark.skipif(sys.platform == "win32", reason="needs POSIX signals")
def test_os_kill_stops_a_process():
    child = subprocess.Popen([sys.executable, "-c", "import time; time.sleep(60)"])
    try:
        assert run(f'include "os"; os.kill({child.pid})') == "true"
        assert child.wait(timeout=10) == -signal.SIGKILL
    finally:
        if child.poll() is None:
            child.kill()
            child.wait()
    assert error_of('include "os"; os.kill("1");').code == "E0014"


###############################################################################
# net
###############################################################################

class EchoHandler(http.server.BaseHTTPRequestHandler):
    def reply(self):
        length = int(self.headers.get("Content-Length") or 0)
        body = self.rfile.read(length).decode() if length else ""
        text = f"{self.command} {self.path}"
        if body:
            text += f" {body} {self.headers.get('Content-Type')}"
        data = text.encode()
        self.send_response(404 if self.path == "/missing" else 200)
        self.send_header("X-Echo", "yes")
        self.send_header("Content-Length", str(len(data)))
        self.end_headers()
        if self.command != "HEAD":
            self.wfile.write(data)

    do_GET = do_POST = do_PUT = do_DELETE = do_HEAD = do_PATCH = reply

    def log_message(self, format, *args):
        pass


@pytest.fixture
def echo_url():
    server = http.server.ThreadingHTTPServer(("127.0.0.1", 0), EchoHandler)
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    yield f"http://127.0.0.1:{server.server_port}"
    server.shutdown()
    server.server_close()


def free_port(kind=socket.SOCK_STREAM):
    with socket.socket(socket.AF_INET, kind) as s:
        s.bind(("127.0.0.1", 0))
        return s.getsockname()[1]


def connect(port, timeout=5.0):
    deadline = time.monotonic() + timeout
    while True:
        try:
            return socket.create_connection(("127.0.0.1", port), timeout=timeout)
        except OSError:
            if time.monotonic() > deadline:
                raise
            time.sleep(0.05)


def run_in_background(source):
    failures = []

    def target():
        try:
            run_program(source)
        except VictoriaError as e:
            failures.append(e.diagnostic)

    thread = threading.Thread(target=target, daemon=True)
    thread.start()
    return thread, failures


def test_net_http_client(echo_url):
    assert run(f'include "net"; let r = net.get("{echo_url}/hello"); [r.statusCode, r.status, r.body]') == (
        "[200, 200 OK, GET /hello]")
    assert run(f'include "net"; net.post("{echo_url}/items", "x=1", "text/plain").body') == (
        "POST /items x=1 text/plain")
    assert run(f'include "net"; net.put("{echo_url}/items/1", "y").body') == "PUT /items/1 y application/json"
    assert run(f'include "net"; net.delete("{echo_url}/items/1").body') == "DELETE /items/1"
    assert run(f'include "net"; let r = net.head("{echo_url}/"); [r.statusCode, r.headers["X-Echo"]]') == (
        "[200, yes]")


def test_net_error_statuses_are_responses(echo_url):
    assert run(f'include "net"; let r = net.get("{echo_url}/missing"); [r.statusCode, r.status]') == (
        "[404, 404 Not Found]")


def test_net_request_with_method_and_headers(echo_url):
    source = f'include "net"; let r = net.request("patch", "{echo_url}/p", "z", {{"Content-Type": "text/x"}}); ' \
             '[r.body, r.headers["X-Echo"]]'
    assert run(source) == "[PATCH /p z text/x, yes]"


def test_net_connection_failures_are_catchable():
    url = f"http://127.0.0.1:{free_port()}/"
    diag = error_of(f'include "net"; net.get("{url}");')
    assert diag.code == "E0022"
    assert diag.message.startswith("net: HTTP GET failed")
    assert run(f'include "net"; try {{ net.get("{url}") }} catch (e) {{ "offline" }}') == "offline"
    assert error_of('include "net"; net.get(1);').code == "E0014"


def test_net_helpers():
    assert run('include "net"; net.parseQuery("a=1&b=2&a=3")') == "{a: 1,3, b: 2}"
    assert run('include "net"; net.lookupHost("127.0.0.1")') == "[127.0.0.1]"


@pytest.mark.skipif(not hasattr(socket, "if_nameindex"), reason="needs socket.if_nameindex")
def test_net_interfaces():
    assert run('include "net"; let all = net.interfaces(); len(all) > 0 && len(all[0].name) > 0') == "true"


def test_net_tcp_client():
    server = socket.create_server(("127.0.0.1", 0))

    def answer():
        conn, _ = server.accept()
        with conn:
            line = conn.makefile("rb").readline()
            conn.sendall(line.upper() + b"bye\n")

    thread = threading.Thread(target=answer, daemon=True)
    thread.start()
    port = server.getsockname()[1]
    source = f'include "net"; let c = net.dial("127.0.0.1", {port}); c.write("hello\\n"); ' \
             'let first = c.read(); let rest = c.readAll(); c.close(); [first, rest]'
    try:
        assert run(source) == "[HELLO, bye\n]"
    finally:
        thread.join(timeout=5)
        server.close()


def test_net_udp_client():
    with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as server:
        server.bind(("127.0.0.1", 0))
        server.settimeout(5)
        port = server.getsockname()[1]
        run(f'include "net"; let c = net.dialUdp("127.0.0.1", {port}); c.write("ping"); c.close();')
        assert server.recvfrom(64)[0] == b"ping"


def test_net_listen_tcp_hands_connections_to_the_handler():
    port = free_port()
    source = """
    include "net";
    net.listenTcp(PORT, define(conn) {
        conn.write("hi " + conn.read() + "\\n");
        conn.close();
        1 / 0;
    });
    """.replace("PORT", str(port))
    thread, failures = run_in_background(source)
    with connect(port) as client:
        client.sendall(b"bob\n")
        assert client.makefile("rb").readline() == b"hi bob\n"
    thread.join(timeout=5)
    assert [d.code for d in failures] == ["E0007"]


def test_net_listen_udp_hands_datagrams_to_the_handler(capsys):
    port = free_port(socket.SOCK_DGRAM)
    source = 'include "net"; net.listenUdp(PORT, define(packet) { print(packet.data); 1 / 0; });'
    thread, failures = run_in_background(source.replace("PORT", str(port)))
    with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as sender:
        deadline = time.monotonic() + 5
        while thread.is_alive() and time.monotonic() < deadline:
            sender.sendto(b"ping", ("127.0.0.1", port))
            time.sleep(0.05)
    thread.join(timeout=1)
    assert [d.code for d in failures] == ["E0007"]
    assert "ping\n" in capsys.readouterr().out


def test_net_serve_routes_requests_to_handlers():
    port = free_port()
    source = """
    include "net";
    net.serve(PORT, {
        "/hello": define(req) { "hi " + req.method + " " + req.query },
        "/json": define(req) { return {"status": 201, "headers": {"X-Kind": "victoria"}, "body": req.body}; },
        "/fail": define(req) { 1 / 0 }
    });
    """.replace("PORT", str(port))
    run_in_background(source)
    connect(port).close()
    base = f"http://127.0.0.1:{port}"

    with urllib.request.urlopen(base + "/hello?x=1", timeout=5) as resp:
        assert resp.read() == b"hi GET x=1"
        assert resp.headers["Content-Type"] == "text/plain"
    req = urllib.request.Request(base + "/json", data=b"payload", method="POST")
    with urllib.request.urlopen(req, timeout=5) as resp:
        assert resp.status == 201
        assert resp.headers["X-Kind"] == "victoria"
        assert resp.read() == b"payload"
    with pytest.raises(urllib.error.HTTPError) as info:
        urllib.request.urlopen(base + "/fail", timeout=5)
    assert info.value.code == 500
    assert info.value.read() == b"division by zero"
    with pytest.raises(urllib.error.HTTPError) as info:
        urllib.request.urlopen(base + "/elsewhere", timeout=5)
    assert info.value.code == 404


def test_net_listen_sends_every_path_to_one_handler():
    port = free_port()
    run_in_background('include "net"; net.listen(PORT, define(req) { req.path });'.replace("PORT", str(port)))
    connect(port).close()
    with urllib.request.urlopen(f"http://127.0.0.1:{port}/any/where", timeout=5) as resp:
        assert resp.read() == b"/any/where"


def test_route_matching():
    routes = [("/", "root"), ("/api/", "api"), ("/api/users", "users")]
    assert match_route(routes, "/api/users") == "users"
    assert match_route(routes, "/api/users/7") == "api"
    assert match_route(routes, "/other") == "root"
    assert match_route([("/exact", "x")], "/exact/more") is None
