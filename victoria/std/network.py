"""The ``net`` module: an HTTP client, HTTP servers and TCP/UDP sockets.

Responses come back as hashes with ``status`` ("200 OK"), ``statusCode``
and ``body``; ``head`` and ``request`` add the response ``headers``.
Non-2xx responses are ordinary responses, only transport failures are
errors. Servers call a Victoria handler per request, connection or
datagram. HTTP handlers may return a string, a hash with ``status``,
``headers`` and ``body``, or any other value (sent as its text).
"""

import http.client
import http.server
import logging
import os
import socket
import urllib.error
import urllib.parse
import urllib.request
from typing import Callable, Dict, List, Optional, Tuple

from .. import catalog
from ..builtin_function import BuiltinFunction
from ..objects import NULL, Object, Integer, String, Array, Error, Hash, Null
from .core import arity_error, type_error

log = logging.getLogger(__name__)

Apply = Callable[[Object, List[Object]], Object]
Route = Tuple[str, Object]

DEFAULT_CONTENT_TYPE = "application/json"
UDP_BUFFER = 4096
SYS_NET = "/sys/class/net"


def _net_error(message: str) -> Error:
    return Error(catalog.module_error("net", message))


def _text(data: bytes) -> str:
    return data.decode("utf-8", errors="replace")


def _headers(message) -> Hash:
    result = Hash()
    for name in dict.fromkeys(message.keys()):
        result.set(String(name), String(", ".join(message.get_all(name))))
    return result


def _fetch(method: str, url: str, body: Optional[str] = None,
           headers: Optional[Dict[str, str]] = None):
    """Perform one request; returns (status, reason, headers, body) or an Error."""
    data = body.encode("utf-8") if body is not None else None
    try:
        req = urllib.request.Request(url, data=data, headers=headers or {}, method=method)
        with urllib.request.urlopen(req) as resp:
            return resp.status, resp.reason, resp.headers, resp.read()
    except urllib.error.HTTPError as e:
        try:
            return e.code, e.reason, e.headers, e.read()
        finally:
            e.close()
    except urllib.error.URLError as e:
        return _net_error(f"HTTP {method} failed: {e.reason}")
    except (OSError, ValueError, http.client.HTTPException) as e:
        return _net_error(f"HTTP {method} failed: {e}")


def _response(fetched, body: bool = True, headers: bool = False) -> Object:
    if isinstance(fetched, Error):
        return fetched
    status, reason, message, data = fetched
    entries: Dict[str, Object] = {
        "status": String(f"{status} {reason}"),
        "statusCode": Integer(status),
    }
    if body:
        entries["body"] = String(_text(data))
    if headers:
        entries["headers"] = _headers(message)
    return Hash.from_dict(entries)


###############################################################################
# Sockets
###############################################################################

def _address(addr) -> str:
    host, port = addr[0], addr[1]
    if ":" in host:
        return f"[{host}]:{port}"
    return f"{host}:{port}"


def socket_object(sock: socket.socket) -> Hash:
    """Wrap a connected socket as a hash of read/readAll/write/close/remoteAddr."""
    reader = sock.makefile("rb")

    def sock_read(args: List[Object]) -> Object:
        try:
            line = reader.readline()
        except OSError as e:
            return _net_error(f"failed to read from socket: {e}")
        return String(_text(line).removesuffix("\n"))

    def sock_read_all(args: List[Object]) -> Object:
        try:
            return String(_text(reader.read()))
        except OSError as e:
            return _net_error(f"failed to read from socket: {e}")

    def sock_write(args: List[Object]) -> Object:
        if not isinstance(args[0], String):
            return type_error("write", 0, "STRING", args[0])
        try:
            sock.sendall(args[0].value.encode("utf-8"))
        except OSError as e:
            return _net_error(f"failed to write to socket: {e}")
        return NULL

    def sock_close(args: List[Object]) -> Object:
        reader.close()
        sock.close()
        return NULL

    def sock_remote_addr(args: List[Object]) -> Object:
        try:
            return String(_address(sock.getpeername()))
        except OSError as e:
            return _net_error(f"socket is not connected: {e}")

    return Hash.from_dict({
        "read": BuiltinFunction("read", 0, sock_read),
        "readAll": BuiltinFunction("readAll", 0, sock_read_all),
        "write": BuiltinFunction("write", 1, sock_write),
        "close": BuiltinFunction("close", 0, sock_close),
        "remoteAddr": BuiltinFunction("remoteAddr", 0, sock_remote_addr),
    })


def _dial(host: str, port: int, kind: int) -> socket.socket:
    if kind == socket.SOCK_STREAM:
        return socket.create_connection((host, port))
    family, socktype, proto, _, addr = socket.getaddrinfo(host, port, type=kind)[0]
    sock = socket.socket(family, socktype, proto)
    try:
        sock.connect(addr)
    except OSError:
        sock.close()
        raise
    return sock


###############################################################################
# HTTP servers
###############################################################################

def match_route(routes: List[Route], path: str) -> Optional[Object]:
    """The handler for ``path``: exact patterns, or the longest ``/``-ending prefix."""
    best: Optional[Route] = None
    for pattern, handler in routes:
        if pattern.endswith("/"):
            matched = path.startswith(pattern)
        else:
            matched = path == pattern
        if matched and (best is None or len(pattern) > len(best[0])):
            best = (pattern, handler)
    return best[1] if best is not None else None


def _request_object(request: http.server.BaseHTTPRequestHandler) -> Hash:
    parsed = urllib.parse.urlsplit(request.path)
    length = int(request.headers.get("Content-Length") or 0)
    body = request.rfile.read(length) if length > 0 else b""
    return Hash.from_dict({
        "method": String(request.command),
        "path": String(parsed.path),
        "query": String(parsed.query),
        "headers": _headers(request.headers),
        "body": String(_text(body)),
    })


def _write_result(request: http.server.BaseHTTPRequestHandler, result: Object) -> None:
    status = 200
    headers: Dict[str, str] = {}
    body = ""
    if isinstance(result, Error):
        log.warning("handler for %s %s failed: %s", request.command, request.path, result.diagnostic.message)
        status = 500
        body = result.diagnostic.message
    elif isinstance(result, String):
        headers["Content-Type"] = "text/plain"
        body = result.value
    elif isinstance(result, Hash):
        for pair in result.pairs.values():
            key = pair.key.inspect()
            if key == "status" and isinstance(pair.value, Integer):
                status = pair.value.value
            elif key == "headers" and isinstance(pair.value, Hash):
                for header in pair.value.pairs.values():
                    headers[header.key.inspect()] = header.value.inspect()
            elif key == "body":
                body = pair.value.inspect()
    elif not isinstance(result, Null):
        body = result.inspect()

    data = body.encode("utf-8")
    request.send_response(status)
    for name, value in headers.items():
        request.send_header(name, value)
    request.send_header("Content-Length", str(len(data)))
    request.end_headers()
    if request.command != "HEAD":
        request.wfile.write(data)


def _serve(port: int, routes: List[Route], apply: Apply, label: str) -> Object:
    class RouteHandler(http.server.BaseHTTPRequestHandler):
        def dispatch(self):
            handler = match_route(routes, urllib.parse.urlsplit(self.path).path)
            if handler is None:
                self.send_error(404, "page not found")
                return
            _write_result(self, apply(handler, [_request_object(self)]))

        do_GET = do_POST = do_PUT = do_DELETE = do_HEAD = do_PATCH = do_OPTIONS = dispatch

        def log_message(self, format, *args):
            log.info("%s - %s", self.address_string(), format % args)

    try:
        server = http.server.HTTPServer(("", port), RouteHandler)
    except OSError as e:
        return _net_error(f"failed to start server: {e}")
    print(f"{label} listening on port {server.server_port}", flush=True)
    with server:
        server.serve_forever()
    return NULL


###############################################################################
# Module
###############################################################################

def populate_net_module(apply: Apply) -> Hash:
    """Build the ``net`` hash; ``apply`` calls Victoria handlers."""

    def simple(method: str, name: str, body: bool = True, headers: bool = False) -> BuiltinFunction:
        def fn(args: List[Object]) -> Object:
            if not isinstance(args[0], String):
                return type_error(name, 0, "STRING", args[0])
            return _response(_fetch(method, args[0].value), body=body, headers=headers)
        return BuiltinFunction(name, 1, fn)

    def with_body(method: str, name: str) -> BuiltinFunction:
        def fn(args: List[Object]) -> Object:
            err = arity_error(name, args, 2, 3)
            if err:
                return err
            for i, arg in enumerate(args):
                if not isinstance(arg, String):
                    return type_error(name, i, "STRING", arg)
            content_type = args[2].value if len(args) == 3 else DEFAULT_CONTENT_TYPE
            return _response(_fetch(method, args[0].value, args[1].value, {"Content-Type": content_type}))
        return BuiltinFunction(name, None, fn)

    def net_request(args: List[Object]) -> Object:
        if len(args) < 2:
            return Error(catalog.invalid_argument("request", 2, len(args)))
        method = args[0].inspect().upper()
        body = args[2].value if len(args) > 2 and isinstance(args[2], String) else None
        headers: Dict[str, str] = {}
        if len(args) > 3 and isinstance(args[3], Hash):
            for pair in args[3].pairs.values():
                headers[pair.key.inspect()] = pair.value.inspect()
        return _response(_fetch(method, args[1].inspect(), body, headers), headers=True)

    def net_parse_query(args: List[Object]) -> Object:
        if not isinstance(args[0], String):
            return type_error("parseQuery", 0, "STRING", args[0])
        parsed = urllib.parse.parse_qs(args[0].value, keep_blank_values=True)
        return Hash.from_dict({k: String(",".join(v)) for k, v in parsed.items()})

    def net_lookup_host(args: List[Object]) -> Object:
        if not isinstance(args[0], String):
            return type_error("lookupHost", 0, "STRING", args[0])
        try:
            infos = socket.getaddrinfo(args[0].value, None)
        except OSError as e:
            return _net_error(f"failed to lookup host: {e}")
        addresses = dict.fromkeys(info[4][0] for info in infos)
        return Array([String(a) for a in addresses])

    def net_interfaces(args: List[Object]) -> Object:
        try:
            names = socket.if_nameindex()
        except OSError as e:
            return _net_error(f"failed to get interfaces: {e}")
        result = []
        for index, name in names:
            result.append(Hash.from_dict({
                "name": String(name),
                "index": Integer(index),
                "mtu": Integer(int(_sys_attribute(name, "mtu") or 0)),
                "mac": String(_sys_attribute(name, "address")),
            }))
        return Array(result)

    def dialer(name: str, kind: int, what: str) -> BuiltinFunction:
        def fn(args: List[Object]) -> Object:
            if not isinstance(args[0], String):
                return type_error(name, 0, "STRING", args[0])
            if not isinstance(args[1], Integer):
                return type_error(name, 1, "INTEGER", args[1])
            try:
                return socket_object(_dial(args[0].value, args[1].value, kind))
            except OSError as e:
                return _net_error(f"failed to connect{what}: {e}")
        return BuiltinFunction(name, 2, fn)

    def net_listen_tcp(args: List[Object]) -> Object:
        if not isinstance(args[0], Integer):
            return type_error("listenTcp", 0, "INTEGER", args[0])
        try:
            server = socket.create_server(("", args[0].value))
        except OSError as e:
            return _net_error(f"failed to start TCP server: {e}")
        with server:
            print(f"TCP server listening on port {server.getsockname()[1]}", flush=True)
            while True:
                try:
                    conn, _ = server.accept()
                except OSError as e:
                    return _net_error(f"failed to accept connection: {e}")
                result = apply(args[1], [socket_object(conn)])
                if isinstance(result, Error):
                    conn.close()
                    return result

    def net_listen_udp(args: List[Object]) -> Object:
        if not isinstance(args[0], Integer):
            return type_error("listenUdp", 0, "INTEGER", args[0])
        sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        with sock:
            try:
                sock.bind(("", args[0].value))
            except OSError as e:
                return _net_error(f"failed to start UDP server: {e}")
            print(f"UDP server listening on port {sock.getsockname()[1]}", flush=True)
            while True:
                try:
                    data, remote = sock.recvfrom(UDP_BUFFER)
                except OSError as e:
                    return _net_error(f"failed to receive datagram: {e}")
                packet = Hash.from_dict({"data": String(_text(data)), "remote": String(_address(remote))})
                result = apply(args[1], [packet])
                if isinstance(result, Error):
                    return result

    def net_listen(args: List[Object]) -> Object:
        if not isinstance(args[0], Integer):
            return type_error("listen", 0, "INTEGER", args[0])
        return _serve(args[0].value, [("/", args[1])], apply, "HTTP server")

    def net_serve(args: List[Object]) -> Object:
        if not isinstance(args[0], Integer):
            return type_error("serve", 0, "INTEGER", args[0])
        if not isinstance(args[1], Hash):
            return type_error("serve", 1, "HASH", args[1])
        routes = [(pair.key.inspect(), pair.value) for pair in args[1].pairs.values()]
        return _serve(args[0].value, routes, apply, "HTTP server (mux)")

    functions = [
        simple("GET", "get"),
        with_body("POST", "post"),
        with_body("PUT", "put"),
        simple("DELETE", "delete"),
        simple("HEAD", "head", body=False, headers=True),
        BuiltinFunction("request", None, net_request),
        BuiltinFunction("parseQuery", 1, net_parse_query),
        BuiltinFunction("lookupHost", 1, net_lookup_host),
        BuiltinFunction("interfaces", 0, net_interfaces),
        dialer("dial", socket.SOCK_STREAM, ""),
        dialer("dialUdp", socket.SOCK_DGRAM, " UDP"),
        BuiltinFunction("listenTcp", 2, net_listen_tcp),
        BuiltinFunction("listenUdp", 2, net_listen_udp),
        BuiltinFunction("listen", 2, net_listen),
        BuiltinFunction("serve", 2, net_serve),
    ]
    return Hash.from_dict({fn.name: fn for fn in functions})


def _sys_attribute(interface: str, name: str) -> str:
    path = os.path.join(SYS_NET, interface, name)
    try:
        with open(path, 'r', encoding='utf-8') as f:
            return f.read().strip()
    except OSError:
        return ""
