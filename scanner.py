#!/usr/bin/env python3
"""
Short-domain scanner for the GoDaddy bulk availability API.

- Generates every N-letter combination (a-z) in lexicographic order
- Keeps pronounceable candidates via C/V patterns (see name_patterns)
- Checks each TLD sequentially in batches of 50 with a fixed delay between requests
- Appends available names to per-TLD text files every 500 checked candidates
- Writes available.json (TLD -> names) at the end of the run

Usage:
    python scanner.py 3 .com,.io CVC,VCV
"""

import argparse
import json
import logging
import os
import sys
import time
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from logging.handlers import RotatingFileHandler
from typing import Callable, Dict, List, Optional, Sequence, Tuple

import requests
import yaml
from dotenv import load_dotenv

from name_patterns import count_combos, filter_by_pattern, generate_combos, resolve_patterns

GODADDY_PRODUCTION_URL = "https://api.godaddy.com"
GODADDY_OTE_URL = "https://api.ote-godaddy.com"
AVAILABLE_PATH = "/v1/domains/available"

ENV_API_KEY = "GODADDY_API_KEY"
ENV_API_SECRET = "GODADDY_API_SECRET"

BATCH_SIZE = 50
DELAY_SECONDS = 2.0
SAVE_EVERY = 500
AGGREGATE_FILE = "available.json"


class RegistrarAPIError(Exception):
    pass


class RateLimitedError(RegistrarAPIError):
    pass


# ------------------------------- Config dataclasses -------------------------------

@dataclass
class APIConfig:
    key: str
    secret: str
    sandbox: bool = True
    check_type: str = "FAST"
    timeout: int = 30

    @property
    def base_url(self) -> str:
        return GODADDY_OTE_URL if self.sandbox else GODADDY_PRODUCTION_URL


@dataclass
class ScanConfig:
    letters: int
    tlds: List[str]
    pattern: str = "auto"
    batch_size: int = BATCH_SIZE
    delay_seconds: float = DELAY_SECONDS
    save_every: int = SAVE_EVERY
    output_dir: str = "."
    aggregate_file: str = AGGREGATE_FILE
    dry_run: bool = False
    logging: dict = field(default_factory=dict)


# ------------------------------- Load config -------------------------------

def parse_tlds(arg: str) -> List[str]:
    tlds = []
    for t in (arg or "").split(","):
        t = t.strip().lower()
        if not t:
            continue
        tlds.append(t if t.startswith(".") else f".{t}")
    return tlds


def load_credentials(env=None) -> Tuple[str, str]:
    env = os.environ if env is None else env
    key = (env.get(ENV_API_KEY) or "").strip()
    secret = (env.get(ENV_API_SECRET) or "").strip()
    if not key or not secret:
        raise SystemExit(f"Missing GoDaddy API credentials: set {ENV_API_KEY} and {ENV_API_SECRET} (environment or .env)")
    return key, secret


def load_config(path: Optional[str], letters: int, tlds: List[str], pattern: str,
                key: str = "", secret: str = "") -> Tuple[APIConfig, ScanConfig]:
    cfg = {}
    if path:
        try:
            with open(path, "r", encoding="utf-8") as f:
                cfg = yaml.safe_load(f) or {}
        except OSError as e:
            raise SystemExit(f"Cannot read config {path}: {e}")
        except yaml.YAMLError as e:
            raise SystemExit(f"Invalid YAML in config {path}: {e}")
        if not isinstance(cfg, dict):
            raise SystemExit(f"Config {path} must be a mapping with api/scanner sections.")

    api = cfg.get("api", {}) or {}
    sc = cfg.get("scanner", {}) or {}

    api_cfg = APIConfig(
        key=key,
        secret=secret,
        sandbox=bool(api.get("sandbox", True)),
        check_type=str(api.get("check_type", "FAST")).upper(),
        timeout=int(api.get("timeout", 30)),
    )

    scan_cfg = ScanConfig(
        letters=letters,
        tlds=tlds,
        pattern=pattern,
        batch_size=int(sc.get("batch_size", BATCH_SIZE)),
        delay_seconds=float(sc.get("delay_seconds", DELAY_SECONDS)),
        save_every=int(sc.get("save_every", SAVE_EVERY)),
        output_dir=str(sc.get("output_dir", ".")),
        aggregate_file=str(sc.get("aggregate_file", AGGREGATE_FILE)),
        dry_run=bool(sc.get("dry_run", False)),
        logging=dict(sc.get("logging", {}) or {}),
    )

    if scan_cfg.batch_size < 1 or scan_cfg.batch_size > 50:
        raise SystemExit("scanner.batch_size must be between 1 and 50 (GoDaddy bulk limit).")
    if scan_cfg.save_every < 1:
        raise SystemExit("scanner.save_every must be at least 1.")
    if api_cfg.check_type not in ("FAST", "FULL"):
        raise SystemExit("api.check_type must be FAST or FULL.")

    return api_cfg, scan_cfg


def setup_logging(cfg_logging: dict, debug: bool = False):
    logger = logging.getLogger("scanner")
    if logger.handlers:
        return logger
    level_name = (cfg_logging or {}).get("level", "INFO").upper()
    level = logging.DEBUG if debug else getattr(logging, level_name, logging.INFO)
    logger.setLevel(level)

    log_file = (cfg_logging or {}).get("file", "logs/scanner.log")
    if log_file:
        os.makedirs(os.path.dirname(log_file) or ".", exist_ok=True)
        handler = RotatingFileHandler(log_file, maxBytes=int((cfg_logging or {}).get("rotate_max_mb", 5))*1024*1024,
                                      backupCount=int((cfg_logging or {}).get("rotate_backups", 3)))
        handler.setFormatter(logging.Formatter(fmt="%(asctime)s [%(levelname)s] %(message)s", datefmt="%Y-%m-%d %H:%M:%S"))
        logger.addHandler(handler)

    sh = logging.StreamHandler(sys.stdout)
    sh.setFormatter(logging.Formatter(fmt="%(asctime)s [%(levelname)s] %(message)s", datefmt="%H:%M:%S"))
    logger.addHandler(sh)
    return logger


def jsonl_emit(cfg_logging: dict, event: str, payload: dict):
    path = (cfg_logging or {}).get("jsonl_file")
    if not path:
        return
    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
    try:
        with open(path, "a", encoding="utf-8") as f:
            rec = {"event": event, **payload}
            f.write(json.dumps(rec, ensure_ascii=False) + "\n")
    except OSError as e:
        logging.getLogger("scanner").debug("JSONL write failed | %s", str(e))


# ------------------------------- Registrar client -------------------------------

class GoDaddyClient:
    def __init__(self, api: APIConfig, session: Optional[requests.Session] = None, logging_cfg: Optional[dict] = None):
        self.api = api
        self.session = session or requests.Session()
        self.logging_cfg = logging_cfg or {}
        self.log = logging.getLogger("scanner")

    @property
    def url(self) -> str:
        return f"{self.api.base_url}{AVAILABLE_PATH}"

    def check(self, domains: List[str]) -> List[Tuple[str, bool]]:
        """POST one batch; raises on non-2xx or transport failure."""
        headers = {
            "Authorization": f"sso-key {self.api.key}:{self.api.secret}",
            "Content-Type": "application/json",
            "Accept": "application/json",
        }
        r = self.session.post(
            self.url,
            params={"checkType": self.api.check_type},
            headers=headers,
            json=domains,
            timeout=self.api.timeout,
        )
        if r.status_code == 429:
            raise RateLimitedError(r.text[:300])
        if not r.ok:
            raise RegistrarAPIError(f"HTTP {r.status_code}: {r.text[:300]}")

        data = r.json()
        if not isinstance(data, dict):
            raise RegistrarAPIError(f"Unexpected response body: {r.text[:300]}")
        results = []
        items = data.get("domains", []) or []
        if not isinstance(items, list) or not all(isinstance(item, dict) for item in items):
            raise RegistrarAPIError(f"Unexpected domains list: {r.text[:300]}")
        for item in items:
            domain = str(item.get("domain", "")).lower()
            if domain:
                results.append((domain, bool(item.get("available", False))))
        return results

    def check_availability(self, domains: List[str]) -> List[Tuple[str, bool]]:
        """Fail-soft wrapper: any failure means no availability data for the batch."""
        try:
            return self.check(domains)
        except RateLimitedError as e:
            self.log.warning("API rate limited | batch=%d | %s", len(domains), str(e))
            jsonl_emit(self.logging_cfg, "api_error", {"type": "rate_limited", "message": str(e), "batch_size": len(domains)})
        except RegistrarAPIError as e:
            self.log.warning("API error | batch=%d | %s", len(domains), str(e))
            jsonl_emit(self.logging_cfg, "api_error", {"type": "http_error", "message": str(e), "batch_size": len(domains)})
        except ValueError as e:
            self.log.warning("Invalid API response | batch=%d | %s", len(domains), str(e))
            jsonl_emit(self.logging_cfg, "api_error", {"type": "bad_json", "message": str(e), "batch_size": len(domains)})
        except requests.RequestException as e:
            self.log.warning("Request failed | batch=%d | %s", len(domains), str(e))
            jsonl_emit(self.logging_cfg, "request_exception", {"error": str(e), "batch_size": len(domains)})
        return []


class DryRunClient:
    """Stands in for the registrar: every candidate comes back taken."""

    def check_availability(self, domains: List[str]) -> List[Tuple[str, bool]]:
        return [(d, False) for d in domains]


# ------------------------------- Output files -------------------------------

class ResultWriter:
    def __init__(self, output_dir: str, letters: int, started_at: Optional[datetime] = None,
                 aggregate_file: str = AGGREGATE_FILE):
        self.output_dir = output_dir
        self.letters = letters
        self.started_at = started_at or datetime.now()
        self.aggregate_file = aggregate_file
        self.log = logging.getLogger("scanner")

    def filename_for(self, tld: str) -> str:
        # e.g. 2025-01-31-09-05-00-available-3-letter-com.txt
        stamp = self.started_at.strftime("%Y-%m-%d-%H-%M-%S")
        tld_name = tld.lstrip(".")
        return os.path.join(self.output_dir, f"{stamp}-available-{self.letters}-letter-{tld_name}.txt")

    @property
    def aggregate_path(self) -> str:
        return os.path.join(self.output_dir, self.aggregate_file)

    def start(self, tlds: Sequence[str]):
        os.makedirs(self.output_dir or ".", exist_ok=True)
        for tld in tlds:
            with open(self.filename_for(tld), "w", encoding="utf-8"):
                pass

    def append_available(self, tld: str, names: Sequence[str]):
        if not names:
            return
        path = self.filename_for(tld)
        with open(path, "a", encoding="utf-8") as f:
            for name in names:
                f.write(name + "\n")
        self.log.info("Saved %d available %s domains to %s", len(names), tld, path)

    def flush(self, available: Dict[str, List[str]]):
        os.makedirs(self.output_dir or ".", exist_ok=True)
        with open(self.aggregate_path, "w", encoding="utf-8") as f:
            json.dump(available, f, indent=2)
        self.log.info("Results saved to %s", self.aggregate_path)


# ------------------------------- Batch checker -------------------------------

class CheckerState(Enum):
    IDLE = "idle"
    CHECKING = "checking"
    DRAINING = "draining"
    DONE = "done"


class BatchChecker:
    """
    Sequential per-TLD batch loop.

    Every batch is one registrar call followed by a fixed delay. Names found
    since the last save are handed to the writer once `save_every` more
    candidates have been checked, and always after the last batch of a TLD.
    A failed batch simply contributes nothing; there are no retries.
    """

    def __init__(self, client, writer: ResultWriter, batch_size: int = BATCH_SIZE,
                 delay_seconds: float = DELAY_SECONDS, save_every: int = SAVE_EVERY,
                 sleep: Callable[[float], None] = time.sleep, logging_cfg: Optional[dict] = None):
        self.client = client
        self.writer = writer
        self.batch_size = batch_size
        self.delay_seconds = delay_seconds
        self.save_every = save_every
        self.sleep = sleep
        self.logging_cfg = logging_cfg or {}
        self.log = logging.getLogger("scanner")

        self.state = CheckerState.IDLE
        self.available: Dict[str, List[str]] = {}
        self.checked: Dict[str, int] = {}
        self.saves: List[Tuple[str, int]] = []

    def batches(self, combos: Sequence[str], tld: str):
        for i in range(0, len(combos), self.batch_size):
            yield [f"{combo}{tld}" for combo in combos[i:i + self.batch_size]]

    def _save(self, tld: str, pending: List[str]):
        self.writer.append_available(tld, list(pending))
        self.saves.append((tld, self.checked[tld]))
        jsonl_emit(self.logging_cfg, "save", {"tld": tld, "checked": self.checked[tld], "saved": len(pending)})

    def check_tld(self, tld: str, combos: Sequence[str]) -> List[str]:
        total = len(combos)
        found = self.available.setdefault(tld, [])
        self.checked[tld] = 0
        last_saved = 0
        pending: List[str] = []

        self.log.info("Checking %s domains | candidates=%d", tld, total)
        for batch in self.batches(combos, tld):
            self.state = CheckerState.CHECKING
            jsonl_emit(self.logging_cfg, "batch_send", {"tld": tld, "size": len(batch)})
            results = self.client.check_availability(batch)

            new = [domain for domain, available in results if available]
            for domain in new:
                self.log.info("Available: %s", domain)
            found.extend(new)
            pending.extend(new)
            jsonl_emit(self.logging_cfg, "api_response", {"tld": tld, "checked": len(results), "available": new})

            self.checked[tld] += len(batch)
            self.log.info("Processed %d/%d for %s", self.checked[tld], total, tld)

            if self.checked[tld] - last_saved >= self.save_every or self.checked[tld] == total:
                if self.checked[tld] == total:
                    self.state = CheckerState.DRAINING
                self._save(tld, pending)
                pending = []
                last_saved = self.checked[tld]

            self.sleep(self.delay_seconds)

        self.log.info("Done %s | available=%d", tld, len(found))
        return found

    def run(self, tlds: Sequence[str], combos: Sequence[str]) -> Dict[str, List[str]]:
        for tld in tlds:
            self.available.setdefault(tld, [])
        try:
            for tld in tlds:
                self.check_tld(tld, combos)
        finally:
            self.writer.flush(self.available)
            self.state = CheckerState.DONE
        return self.available


# ------------------------------- Main -------------------------------

def positive_int(value: str) -> int:
    try:
        n = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid number of letters: {value!r}")
    if n < 1:
        raise argparse.ArgumentTypeError(f"number of letters must be at least 1, got {n}")
    return n


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Find available short domains via the GoDaddy bulk availability API",
        epilog="Patterns: 'auto' (default), 'CVC', 'VCV', 'CVCV', 'CVC,VCV' (multiple), or 'none'",
    )
    parser.add_argument("letters", type=positive_int, help="Number of letters per name (e.g. 3)")
    parser.add_argument("tlds", nargs="?", default=".com", help="Comma-separated TLDs (default .com)")
    parser.add_argument("pattern", nargs="?", default="auto", help="C/V pattern filter (default auto)")
    parser.add_argument("--config", help="Optional YAML config")
    parser.add_argument("--output-dir", help="Override scanner.output_dir")
    parser.add_argument("--dry-run", action="store_true", help="Do not call the API; nothing is reported available")
    parser.add_argument("--debug", action="store_true", help="Verbose logging")
    return parser


def main(argv=None, sleep: Callable[[float], None] = time.sleep) -> int:
    args = build_parser().parse_args(argv)

    load_dotenv()
    key, secret = "", ""
    if not args.dry_run:
        key, secret = load_credentials()

    tlds = parse_tlds(args.tlds)
    if not tlds:
        raise SystemExit("No TLDs given. Example: scanner.py 3 .com,.io")

    api_cfg, scan_cfg = load_config(args.config, args.letters, tlds, args.pattern, key, secret)
    if args.output_dir:
        scan_cfg.output_dir = args.output_dir
    scan_cfg.dry_run = scan_cfg.dry_run or args.dry_run

    try:
        resolve_patterns(scan_cfg.pattern, scan_cfg.letters)
    except ValueError as e:
        raise SystemExit(str(e))

    logger = setup_logging(scan_cfg.logging, debug=args.debug)
    logger.info("Config: %d-letter combos | TLDs: %s | Pattern: %s | dry_run=%s",
                scan_cfg.letters, ", ".join(scan_cfg.tlds), scan_cfg.pattern, scan_cfg.dry_run)
    logger.info("%d possible combinations", count_combos(scan_cfg.letters))

    combos = filter_by_pattern(generate_combos(scan_cfg.letters), scan_cfg.pattern, scan_cfg.letters)

    if scan_cfg.dry_run:
        client = DryRunClient()
    else:
        client = GoDaddyClient(api_cfg, logging_cfg=scan_cfg.logging)
    writer = ResultWriter(scan_cfg.output_dir, scan_cfg.letters, aggregate_file=scan_cfg.aggregate_file)
    writer.start(scan_cfg.tlds)

    checker = BatchChecker(client, writer, batch_size=scan_cfg.batch_size, delay_seconds=scan_cfg.delay_seconds,
                           save_every=scan_cfg.save_every, sleep=sleep, logging_cfg=scan_cfg.logging)
    try:
        available = checker.run(scan_cfg.tlds, combos)
    except KeyboardInterrupt:
        logger.info("Stop | interrupted by user (KeyboardInterrupt)")
        jsonl_emit(scan_cfg.logging, "stop", {"reason": "keyboardinterrupt"})
        return 130

    total = sum(len(v) for v in available.values())
    logger.info("Done! %d available domains across %d TLD(s)", total, len(scan_cfg.tlds))
    jsonl_emit(scan_cfg.logging, "stop", {"reason": "complete", "available": total})
    return 0


if __name__ == "__main__":
    sys.exit(main())
