import json
import logging
import queue
import subprocess
import threading
import time
from typing import Any, Dict, List, Optional

from .logs import attach_file_handler, log_path

PROTOCOL_VERSION = "2024-11-05"


class MCPClientError(Exception):
    pass


class MCPStdIOClient:
    """JSON-RPC 2.0 client for a FastMCP server speaking the stdio transport.

    Usage:
        with MCPStdIOClient([sys.executable, "-m", "avalanche.server"]) as client:
            text = client.call_tool("get_avalanche_info", {
                "product_type": "avalancheforecast", "latitude": 39.64, "longitude": -106.38,
            })
    """

    def __init__(self, command: List[str], cwd: str = ".", timeout: float = 30.0, log_file: Optional[str] = None, log_level: int = logging.INFO):
        self.command = command
        self.cwd = cwd
        self.timeout = timeout
        self.proc: Optional[subprocess.Popen] = None
        self._id = 0
        self._pending: Dict[int, queue.Queue] = {}
        self._lock = threading.Lock()
        self._write_lock = threading.Lock()
        self._reader_thread: Optional[threading.Thread] = None
        self._running = False

        # Server stdout noise and stderr go to a log file, never the console
        self.log_file = log_file or log_path("mcp_server.log")
        self.logger = attach_file_handler(logging.getLogger("mcp_client"), self.log_file, log_level)

    def __enter__(self) -> "MCPStdIOClient":
        self.start()
        return self

    def __exit__(self, *exc) -> None:
        self.stop()

    @property
    def running(self) -> bool:
        return self.proc is not None and self.proc.poll() is None

    def start(self) -> None:
        """Spawn the server process and perform the MCP initialize handshake."""
        if self.proc:
            return

        self.proc = subprocess.Popen(
            self.command,
            cwd=self.cwd,
            stdin=subprocess.PIPE,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            bufsize=0,
        )
        self._running = True
        self._reader_thread = threading.Thread(target=self._reader_loop, daemon=True)
        self._reader_thread.start()
        threading.Thread(target=self._stderr_loop, daemon=True).start()

        init_params = {
            "protocolVersion": PROTOCOL_VERSION,
            "capabilities": {},
            "clientInfo": {"name": "avalanche-agent", "version": "1.0.0"},
        }
        try:
            result = self._send_request("initialize", init_params)
        except MCPClientError:
            self.stop()
            raise
        server_info = (result or {}).get("serverInfo", {})
        self.logger.info(f"[MCP client] Connected to {server_info.get('name', 'server')}")
        self._send_notification("notifications/initialized")

    def stop(self) -> None:
        self._running = False
        if not self.proc:
            return
        try:
            self.proc.terminate()
            self.proc.wait(timeout=2)
        except subprocess.TimeoutExpired:
            self.proc.kill()
        except OSError as e:
            self.logger.warning(f"[MCP client] Error stopping server: {e}")
        self.proc = None

    def _stderr_loop(self) -> None:
        proc = self.proc
        if not proc or not proc.stderr:
            return
        with proc.stderr:
            for line in iter(proc.stderr.readline, b""):
                msg = line.decode("utf-8", errors="ignore").rstrip()
                if msg:
                    self.logger.info(f"[MCP server] {msg}")

    def _reader_loop(self) -> None:
        """Read newline-delimited JSON messages from the server's stdout."""
        proc = self.proc
        if not proc or not proc.stdout:
            return

        while self._running:
            line = proc.stdout.readline()
            if not line:
                if proc.poll() is not None:
                    break
                time.sleep(0.01)
                continue

            text = line.decode("utf-8", errors="ignore").strip()
            if not text:
                continue
            try:
                message = json.loads(text)
            except json.JSONDecodeError:
                self.logger.info(f"[MCP server output] {text}")
                continue
            if isinstance(message, dict):
                self._handle_message(message)

    def _handle_message(self, message: Dict[str, Any]) -> None:
        msg_id = message.get("id")
        if msg_id is None:
            # Server notifications (logging, progress) are not used
            return
        with self._lock:
            q = self._pending.get(msg_id)
        if q:
            q.put(message)
        else:
            self.logger.warning(f"[MCP client] Received response for unknown id: {msg_id}")

    def _next_id(self) -> int:
        with self._lock:
            self._id += 1
            return self._id

    def _send_notification(self, method: str, params: Any = None) -> None:
        """Send a JSON-RPC notification (no response expected)."""
        message: Dict[str, Any] = {"jsonrpc": "2.0", "method": method}
        if params is not None:
            message["params"] = params
        self._write_message(message)

    def _send_request(self, method: str, params: Any = None) -> Any:
        """Send a JSON-RPC request and block until its response arrives."""
        req_id = self._next_id()
        message: Dict[str, Any] = {"jsonrpc": "2.0", "method": method, "id": req_id}
        if params is not None:
            message["params"] = params

        q: queue.Queue = queue.Queue()
        with self._lock:
            self._pending[req_id] = q
        try:
            self._write_message(message)
            try:
                response = q.get(timeout=self.timeout)
            except queue.Empty:
                raise MCPClientError(f"Timeout waiting for response to {method}")
        finally:
            with self._lock:
                self._pending.pop(req_id, None)

        if "error" in response:
            raise MCPClientError(response["error"].get("message", "Unknown error"))
        return response.get("result")

    def _write_message(self, message: Dict[str, Any]) -> None:
        if not self.running:
            raise MCPClientError("MCP server is not running")
        payload = json.dumps(message) + "\n"
        try:
            with self._write_lock:
                self.proc.stdin.write(payload.encode("utf-8"))
                self.proc.stdin.flush()
        except OSError as e:
            raise MCPClientError(f"Failed to write to MCP server: {e}")

    def list_tools(self) -> List[Dict[str, Any]]:
        result = self._send_request("tools/list", {})
        return (result or {}).get("tools", [])

    def call_tool(self, tool_name: str, arguments: Dict[str, Any]) -> Any:
        """Call an MCP tool and return the text of its first content item.

        Raises MCPClientError when the server flags the result as an error.
        """
        result = self._send_request("tools/call", {"name": tool_name, "arguments": arguments})
        if not isinstance(result, dict) or "content" not in result:
            return result

        content = result["content"]
        text = None
        if isinstance(content, list) and content:
            first = content[0]
            text = first.get("text", str(first)) if isinstance(first, dict) else str(first)
        if result.get("isError"):
            raise MCPClientError(text or f"Tool {tool_name} failed")
        return text
