import argparse
import re
import socket
import sys
from dataclasses import dataclass
from typing import List, Optional

from . import protocol
from .config import Config

LETTERS = re.compile(r"^[A-Za-z]+$")
HANDSHAKE_LINE = "Hello from client"


@dataclass
class Response:
    """A classified server response line."""
    kind: str
    fields: List[str]
    raw: str


def parse_response(line: str) -> Response:
    """
    Classify a response:
      round, found, duplicate, wrong, hint, game_over, not_active, error, unknown
    """
    f = line.split(protocol.SEP)
    if f[0] == protocol.GAME_OVER:
        return Response("game_over", f, line)
    if len(f) >= 3 and f[2] == protocol.JUMBLE:
        return Response("round", f, line)
    if len(f) >= 2 and f[1] == protocol.FOUND:
        return Response("found", f, line)
    if f[0] == protocol.HINT:
        return Response("hint", f, line)
    if line == protocol.DUPLICATE:
        return Response("duplicate", f, line)
    if line == protocol.WRONG:
        return Response("wrong", f, line)
    if line == protocol.NOT_ACTIVE:
        return Response("not_active", f, line)
    if f[0] == "Error":
        return Response("error", f, line)
    return Response("unknown", f, line)


class JumbleClient:
    """
    Blocking write-then-read client. Every request except DISCONNECT
    gets exactly one response line.
    """
    def __init__(self, host: str = Config.HOST, port: int = Config.PORT, timeout: Optional[float] = None):
        self.host = host
        self.port = port
        self.timeout = timeout
        self.sock: Optional[socket.socket] = None
        self._reader = None

    def connect(self) -> "JumbleClient":
        self.sock = socket.create_connection((self.host, self.port), timeout=self.timeout)
        self._reader = self.sock.makefile("r", encoding="utf-8", newline="\n")
        return self

    def send(self, token: str):
        if self.sock is None:
            raise ConnectionError("Not connected.")
        self.sock.sendall(protocol.frame(token))

    def receive(self) -> str:
        line = self._reader.readline()
        if not line:
            raise ConnectionError("Server closed the connection.")
        return line.rstrip("\r\n")

    def request(self, token: str) -> str:
        self.send(token)
        return self.receive()

    def hello(self) -> str:
        return self.request(HANDSHAKE_LINE)

    def guess(self, word: str) -> str:
        return self.request(word)

    def hint(self) -> str:
        return self.request("REQUEST_HINT")

    def new_game(self) -> str:
        return self.request("NEW_GAME")

    def time_up(self) -> str:
        return self.request("TIME_UP")

    def disconnect(self):
        try:
            self.send("DISCONNECT")
        finally:
            self.close()

    def close(self):
        if self._reader is not None:
            self._reader.close()
            self._reader = None
        if self.sock is not None:
            try:
                self.sock.shutdown(socket.SHUT_RDWR)
            except OSError:
                pass
            self.sock.close()
            self.sock = None

    def __enter__(self):
        if self.sock is None:
            self.connect()
        return self

    def __exit__(self, *exc):
        self.close()


# ----------- Console front-end -----------

def show_round(r: Response):
    jumble, count = r.fields[0], r.fields[1]
    print(f"\n🔤 Jumble: {jumble}")
    print(f"🔢 Words to find: {count}")
    print("Commands: :hint  :new  :timeup  :quit")


def show(r: Response) -> bool:
    """Print a reply. Returns True when the round is over."""
    if r.kind == "round":
        show_round(r)
    elif r.kind == "found":
        print(f"✅ Correct! You found '{r.fields[0]}'!")
    elif r.kind == "duplicate":
        print("⚠️  Already found.")
    elif r.kind == "wrong":
        print("❌ Wrong guess!")
    elif r.kind == "hint":
        print(f"💡 Hint: {r.fields[1] if len(r.fields) > 1 else ''}")
    elif r.kind == "game_over":
        reason = "TIME'S UP!" if r.fields[1:2] == [protocol.TIME_IS_UP] else "TOO MANY WRONG GUESSES!"
        print(f"💀 {reason}")
        if len(r.fields) > 2 and r.fields[2]:
            print(f"Unfound words: {r.fields[2]}")
        return True
    elif r.kind == "not_active":
        print("⏸  Game is not active. Use :new to play again.")
        return True
    elif r.kind == "error":
        print(f"❌ Server error: {r.raw}")
    else:
        print(f"⚠️  Unknown message: {r.raw}")
    return False


def round_size(r: Response) -> Optional[int]:
    """Word count of a round announcement, or None for any other reply."""
    if r.kind != "round":
        return None
    try:
        return int(r.fields[1])
    except ValueError:
        return None


def main(argv=None):
    ap = argparse.ArgumentParser()
    ap.add_argument("--host", default=Config.HOST)
    ap.add_argument("--port", type=int, default=Config.PORT)
    args = ap.parse_args(argv)

    print(f"🌐 Connecting to Word Jumble server at {args.host}:{args.port} ...")
    client = JumbleClient(args.host, args.port)
    try:
        client.connect()
        print("✅ Connected!")
        r = parse_response(client.hello())
        show(r)
        total, found = round_size(r), 0
        if total is None:
            print("❌ Could not start a round.")
            return 1

        while True:
            try:
                line = input(">> ").strip()
            except EOFError:
                break
            if not line:
                print("Please enter a guess!")
                continue

            if line == ":quit":
                break
            if line == ":hint":
                show(parse_response(client.hint()))
                continue
            if line in (":new", ":timeup"):
                r = parse_response(client.new_game() if line == ":new" else client.time_up())
            elif not LETTERS.match(line):
                print("Please enter only letters (A-Z)!")
                continue
            else:
                r = parse_response(client.guess(line.upper()))

            over = show(r)
            if round_size(r) is not None:
                total, found = round_size(r), 0
            elif r.kind == "found":
                found += 1
                print(f"Score: {found}/{total}")
                if found == total:
                    print("🏆 You found every word!")
                    over = True
            elif r.kind == "error":
                return 1

            if over:
                again = input("Play again? [y/N] ").strip().lower()
                if again != "y":
                    break
                r = parse_response(client.new_game())
                show(r)
                total, found = round_size(r), 0
                if total is None:
                    print("❌ Could not start a round.")
                    return 1

        client.disconnect()
    except OSError as e:
        print(f"❌ Communication error: {e}")
        return 1
    except (KeyboardInterrupt, EOFError):
        pass
    finally:
        client.close()
        print("\n🔒 Connection closed.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
