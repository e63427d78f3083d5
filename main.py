# main.py
import os
import sys
import argparse
import logging
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import List, Optional

from utils.crashlog import setup_crashlog, log_dir
from config import AppConfig, DecodeConfig
from errors import ConversionError
from app import ConversionJob, JobOutput

MIDI_SUFFIXES = {".mid", ".midi"}
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

def _init_logging(verbose: bool = False):
    if logging.getLogger().handlers:
        return
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format=LOG_FORMAT,
        encoding="utf-8"
    )
    try:
        from logging.handlers import RotatingFileHandler
        fh = RotatingFileHandler(os.path.join(log_dir(), "pindisc.log"),
                                 maxBytes=2*1024*1024, backupCount=3, encoding="utf-8")
        fh.setLevel(logging.DEBUG)
        fh.setFormatter(logging.Formatter(LOG_FORMAT))
        logging.getLogger().addHandler(fh)
    except OSError:
        logging.warning("file logging disabled, log dir not writable")

def build_parser() -> argparse.ArgumentParser:
    dc = DecodeConfig()
    ap = argparse.ArgumentParser(prog="pindisc", description="MIDI / audio → pin disc layout")
    ap.add_argument('inputs', nargs='+', help="MIDI or audio files, one job each")
    ap.add_argument('--side-b', help="second MIDI file for the bottom side (single MIDI input only)")
    ap.add_argument('--audio', action='store_true', help="treat every input as audio")
    ap.add_argument('--mode', default='mono', choices=['mono', 'poly'])
    ap.add_argument('--start', type=float, default=0.0, help="audio clip start (s)")
    ap.add_argument('--clip', type=float, default=dc.default_clip_seconds, help="audio clip length (s)")
    ap.add_argument('--format', default='json', choices=['json', 'png'])
    ap.add_argument('--out', default='.', help="output directory")
    ap.add_argument('--workers', type=int, default=2)
    ap.add_argument('-v', '--verbose', action='store_true')
    return ap

def _builder(fmt: str, cfg: AppConfig):
    if fmt == 'png':
        from render.renderer import DiscRenderer
        return DiscRenderer(cfg.render)
    from render.export import LayoutExporter
    return LayoutExporter()

def _log_event(job_id: str, kind: str, value):
    logging.debug("job %s %s=%s", job_id, kind, value)

def run_one(path: str, args, cfg: AppConfig) -> JobOutput:
    src = Path(path)
    job = ConversionJob(cfg, builder=_builder(args.format, cfg), listener=_log_event)
    data = src.read_bytes()
    if args.audio or src.suffix.lower() not in MIDI_SUFFIXES:
        return job.convert_audio(data, mode=args.mode, start_seconds=args.start,
                                 duration_seconds=args.clip, label=src.stem)
    data_b = label_b = None
    if args.side_b:
        side_b = Path(args.side_b)
        data_b, label_b = side_b.read_bytes(), side_b.stem
    return job.convert_midi(data, data_b, label_a=src.stem, label_b=label_b)

def write_output(out: JobOutput, out_dir: str, fmt: str) -> Path:
    os.makedirs(out_dir, exist_ok=True)
    target = Path(out_dir) / f"{out.name}.{fmt}"
    target.write_bytes(out.payload)
    return target

def main(argv: Optional[List[str]] = None) -> int:
    setup_crashlog()
    args = build_parser().parse_args(argv)
    _init_logging(args.verbose)
    if args.side_b and len(args.inputs) != 1:
        logging.error("--side-b needs exactly one input")
        return 2
    cfg = AppConfig()

    failures = 0
    with ThreadPoolExecutor(max_workers=max(1, args.workers)) as pool:
        futures = {p: pool.submit(run_one, p, args, cfg) for p in args.inputs}
        for path, fut in futures.items():
            try:
                out = fut.result()
            except ConversionError as e:
                failures += 1
                logging.error("%s: %s", path, e)
                continue
            except OSError as e:
                failures += 1
                logging.error("%s: cannot read input (%s)", path, e)
                continue
            target = write_output(out, args.out, args.format)
            headers = out.summary.to_headers()
            logging.info("%s → %s  %s", path, target, "  ".join(f"{k}: {v}" for k, v in headers.items()))
    return 1 if failures else 0

if __name__ == '__main__':
    sys.exit(main())
