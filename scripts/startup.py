#!/usr/bin/env python3
"""
Startup script: free the ports from config, then start the router and one service per responder.
Optional: --no-kill, --background, --list-ports, --local (router runs responders in-process).
"""
import argparse
import os
import signal
import subprocess
import sys
import time
from pathlib import Path

import httpx

ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT))

from commerce_router.core.config.env import load_default_env
from commerce_router.core.config.loader import load_router_config

PID_FILE = ROOT / "scripts" / ".startup_pids"

processes = []


def get_pids_on_port(port: int) -> list[int]:
    """Return list of PIDs listening on the given port (macOS/Linux)."""
    try:
        result = subprocess.run(["lsof", "-ti", f":{port}"], capture_output=True, text=True, timeout=5)
    except (FileNotFoundError, subprocess.TimeoutExpired):
        return []
    out = (result.stdout or "").strip()
    if result.returncode != 0 or not out:
        return []
    return [int(x) for x in out.split() if x.strip().isdigit()]


def kill_ports(ports: list[int]) -> None:
    killed = False
    for port in sorted(ports, reverse=True):
        for pid in get_pids_on_port(port):
            try:
                os.kill(pid, signal.SIGKILL)
                print(f"  Killed PID {pid} on port {port}")
                killed = True
            except OSError as e:
                print(f"  Warning: failed to kill PID {pid} on port {port}: {e}", file=sys.stderr)
    if killed:
        time.sleep(2)


def wait_for_health(url: str, timeout: int = 30) -> bool:
    start = time.time()
    while time.time() - start < timeout:
        try:
            if httpx.get(f"{url}/health", timeout=2).status_code == 200:
                return True
        except httpx.HTTPError:
            pass
        time.sleep(0.5)
    return False


def cleanup(sig=None, frame=None):
    for p in processes:
        p.terminate()
        try:
            p.wait(timeout=5)
        except subprocess.TimeoutExpired:
            p.kill()
    PID_FILE.unlink(missing_ok=True)
    sys.exit(0)


def _spawn(args: list[str], env: dict, background: bool) -> subprocess.Popen:
    proc = subprocess.Popen(
        [sys.executable, "-m", *args],
        cwd=str(ROOT),
        env=env,
        stdout=subprocess.DEVNULL if background else None,
        stderr=subprocess.PIPE if background else None,
    )
    processes.append(proc)
    return proc


def main():
    load_default_env(ROOT)
    parser = argparse.ArgumentParser(description="Free ports, then start the router and responder services.")
    parser.add_argument("--config", default=os.environ.get("CONFIG_PATH", "config/domains/commerce.json"))
    parser.add_argument("--no-kill", action="store_true", help="Do not kill processes on ports; only start")
    parser.add_argument("--background", action="store_true", help="Run in background; write PIDs to scripts/.startup_pids")
    parser.add_argument("--list-ports", action="store_true", help="Only list ports from config and which are in use")
    parser.add_argument("--local", action="store_true", help="Run responders in-process inside the router")
    args = parser.parse_args()

    if not (ROOT / args.config).exists():
        print(f"Error: config not found: {args.config}", file=sys.stderr)
        sys.exit(1)
    config = load_router_config(args.config, project_root=ROOT)
    ports = config.ports() if not args.local else [config.router.port]

    if args.list_ports:
        for port in sorted(ports):
            pids = get_pids_on_port(port)
            print(f"  {port}: {f'in use (PIDs {pids})' if pids else 'free'}")
        return

    if not args.no_kill:
        print("Freeing ports...")
        kill_ports(ports)

    env = {**os.environ, "CONFIG_PATH": args.config, "RESPONDER_MODE": "local" if args.local else "http"}

    if not args.local:
        for responder in config.responders:
            proc = _spawn(
                ["commerce_router.agent.main", "--name", responder.name, "--config-path", args.config],
                {**env, "RESPONDER_NAME": responder.name},
                args.background,
            )
            print(f"Responder {responder.name} ({responder.role.value}) started on port {responder.port} (PID {proc.pid})")
            wait_for_health(f"http://127.0.0.1:{responder.port}", timeout=15)

    proc = _spawn(["commerce_router.orchestrator.main"], {**env, "PORT": str(config.router.port)}, args.background)
    print(f"Router started on port {config.router.port} (PID {proc.pid})")

    if args.background:
        PID_FILE.parent.mkdir(parents=True, exist_ok=True)
        PID_FILE.write_text("\n".join(str(p.pid) for p in processes))
        print(f"All running in background. PIDs saved to {PID_FILE}")
        return

    signal.signal(signal.SIGINT, cleanup)
    signal.signal(signal.SIGTERM, cleanup)
    print("All running. Press Ctrl+C to stop.")
    while True:
        time.sleep(1)
        for p in processes:
            if p.poll() is not None:
                print(f"Process {p.pid} exited.")
                cleanup()


if __name__ == "__main__":
    main()
