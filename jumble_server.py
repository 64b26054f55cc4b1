import argparse
import logging
import socket
import socketserver
import threading
from typing import Optional, Set

from word_jumble import protocol
from word_jumble.config import Config
from word_jumble.jumble_core import DirectoryPuzzleProvider, GameConfig, PuzzleLoadError
from word_jumble.session import JumbleSession

logger = logging.getLogger("word_jumble.server")

LOG_FORMAT = "[%(levelname)s] %(message)s"


# ----------- Helpers -----------
def send_line(handler: socketserver.StreamRequestHandler, text: str):
    """Send one response line to a single client. Write errors propagate."""
    handler.wfile.write(protocol.frame(text))
    handler.wfile.flush()


# ----------- Main handler -----------
class Handler(socketserver.StreamRequestHandler):
    """
    Line protocol, one response per request:
      - hello from client...  (start the first round)
      - <word>                (guess)
      - REQUEST_HINT / TIME_UP / NEW_GAME
      - DISCONNECT            (close, no response)
    """
    def setup(self):
        self.timeout = self.server.idle_timeout
        super().setup()

    def handle(self):
        peer = "%s:%s" % self.client_address[:2]
        session = JumbleSession(self.server.provider, self.server.cfg, name=peer)
        logger.info("Connected from %s", peer)

        try:
            while True:
                line = protocol.read_line(self.rfile)
                if line is None:
                    logger.info("Client %s disconnected.", peer)
                    break

                reply = session.handle_line(line)
                if reply.text is not None:
                    send_line(self, reply.text)
                    logger.debug("[%s] Response sent: %s", peer, reply.text)
                if reply.close:
                    break

        except protocol.ProtocolError as e:
            logger.warning("[%s] Protocol error, closing: %s", peer, e)
        except socket.timeout:
            logger.info("[%s] Idle timeout, closing.", peer)
        except OSError as e:
            logger.warning("[%s] Client connection closed: %s", peer, e)
        except Exception:
            logger.exception("[%s] Unexpected session failure", peer)
        finally:
            logger.info("[%s] Session ended - %s", peer, session.summary())


# -------- Threaded TCP server --------
class JumbleServer(socketserver.ThreadingMixIn, socketserver.TCPServer):
    """
    One worker thread per connection. Workers are non-daemon and tracked,
    so server_close() can cancel live sessions and join their threads.
    """
    daemon_threads = False
    block_on_close = True
    allow_reuse_address = True

    def __init__(self, server_address, provider, cfg: Optional[GameConfig] = None,
                 idle_timeout: Optional[float] = None, bind_and_activate=True):
        self.provider = provider
        self.cfg = cfg or GameConfig()
        self.idle_timeout = idle_timeout or None
        self._live: Set[socket.socket] = set()
        self._live_lock = threading.Lock()  # guards the registry only
        super().__init__(server_address, Handler, bind_and_activate)

    def process_request(self, request, client_address):
        self.track(request)
        super().process_request(request, client_address)

    def shutdown_request(self, request):
        self.untrack(request)
        super().shutdown_request(request)

    def track(self, conn: socket.socket):
        with self._live_lock:
            self._live.add(conn)

    def untrack(self, conn: socket.socket):
        with self._live_lock:
            self._live.discard(conn)

    @property
    def active_sessions(self) -> int:
        with self._live_lock:
            return len(self._live)

    def cancel_sessions(self):
        """Shut down every live connection; their workers see EOF and exit."""
        with self._live_lock:
            live = list(self._live)
        for conn in live:
            try:
                conn.shutdown(socket.SHUT_RDWR)
            except OSError:
                pass  # already closed by the peer
        if live:
            logger.info("Cancelled %d live session(s).", len(live))

    def server_close(self):
        self.cancel_sessions()
        super().server_close()


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(description="Word Jumble game server")
    ap.add_argument("--host", default=Config.HOST)
    ap.add_argument("--port", type=int, default=Config.PORT)
    ap.add_argument("--puzzle-dir", default=Config.PUZZLE_DIR,
                    help="directory of puzzle files (one puzzle per .txt file)")
    ap.add_argument("--idle-timeout", type=float, default=Config.IDLE_TIMEOUT_SEC,
                    help="seconds before an idle connection is closed (0 = never)")
    ap.add_argument("--log-level", default=Config.LOG_LEVEL)
    return ap


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=args.log_level.upper(), format=LOG_FORMAT)

    try:
        provider = DirectoryPuzzleProvider(args.puzzle_dir)
    except PuzzleLoadError as e:
        logger.error("Cannot start: %s", e)
        return 1

    cfg = GameConfig(Config.MAX_WRONG_GUESSES, Config.MAX_HINTS)
    with JumbleServer((args.host, args.port), provider, cfg, args.idle_timeout) as srv:
        host, port = srv.server_address[:2]
        logger.info("Word Jumble Server running at %s:%d", host, port)
        logger.info("Requests: hello from client, <guess>, REQUEST_HINT, TIME_UP, NEW_GAME, DISCONNECT")
        try:
            srv.serve_forever()
        except KeyboardInterrupt:
            logger.info("Server stopped manually.")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
