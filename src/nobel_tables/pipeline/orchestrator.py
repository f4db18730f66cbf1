import os
import sys
import time
import json
import shutil
import logging
import argparse
from typing import Optional

import requests

from nobel_tables.data.nobel_fetch import fetch_laureates, save_raw, load_raw, NobelApiError
from nobel_tables.data.nobel_tables import build_tables, table_metrics
from nobel_tables.data.nobel_write import write_tables
from nobel_tables.eval.nobel_eval import eval_tables, load_thresholds, failed_rubric
from nobel_tables.analysis.nobel_analysis import run_analysis, figures_present
from nobel_tables.pipeline.schemas import PipelineConfig
from nobel_tables.pipeline.settings import load_config

logger = logging.getLogger(__name__)


def _write_json(path: str, payload: dict) -> str:
    with open(path, "w", encoding="utf-8") as f:
        json.dump(payload, f, ensure_ascii=False, indent=2, default=str)
    return path


def _save_run_config_snapshot(config: PipelineConfig, run_dir: str) -> str:
    # raw_path and filters are included so a run can be replayed
    snapshot = {k: v for k, v in config.items() if k != "sources"}
    snapshot["sources"] = config.get("sources", {})
    return _write_json(os.path.join(run_dir, "config.json"), snapshot)


def _print_run_summary(run_log: dict) -> None:
    summary = run_log.get("summary", {})
    artifacts = summary.get("artifacts", {})
    print("=== Run Summary ===")
    print(f"Status: {'OK' if summary.get('ok') else 'FAILED'}")
    print(f"Total duration: {summary.get('total_duration_s', 'n/a')}s")
    print(f"Run id: {summary.get('run_id')}")
    if summary.get("failed_step"):
        print(f"Failed step: {summary['failed_step']} ({run_log.get(summary['failed_step'], {}).get('error')})")
    for name, rows in sorted((summary.get("metrics") or {}).items()):
        print(f"{name}: {rows}")
    if summary.get("eval_status_ok") is not None:
        print(f"Eval status_ok: {summary['eval_status_ok']}")
    failed = summary.get("eval_failed_rubric") or []
    if failed:
        print(f"Failed rubric: [{', '.join(failed)}]")
    if artifacts.get("tables_dir"):
        print(f"Tables: {artifacts['tables_dir']}")
    if artifacts.get("published_dir"):
        print(f"Published: {artifacts['published_dir']}")
    if artifacts.get("bundle_zip"):
        print(f"Bundle: {artifacts['bundle_zip']}")
    print("====================")


def _publish(paths: dict, target_dir: str) -> str:
    os.makedirs(target_dir, exist_ok=True)
    for path in paths.values():
        shutil.copyfile(path, os.path.join(target_dir, os.path.basename(path)))
    return target_dir


def run_pipeline(config: Optional[PipelineConfig] = None) -> str:
    """
    Run fetch -> tables -> write -> eval -> charts -> publish -> bundle.

    Returns the path of the global run log. A failing step is recorded in
    the log, which is still written, and the exception is re-raised.
    """
    config = config or load_config()
    base_dir = config["output_dir"]
    run_id = config.get("run_id") or str(int(time.time()))
    run_dir = os.path.join(base_dir, "runs", run_id)
    tables_dir = os.path.join(run_dir, "tables")
    os.makedirs(run_dir, exist_ok=True)
    sep = config.get("sep", ",")
    force = config.get("force", False)

    start = time.time()
    run_log = {"summary": {"run_id": run_id, "run_dir": run_dir, "artifacts": {}}}
    artifacts = run_log["summary"]["artifacts"]
    artifacts["config_json_run_dir"] = _save_run_config_snapshot(config, run_dir)
    current = None

    try:
        # Step 1: fetch (or replay a saved raw file)
        current, t0 = "fetch", time.time()
        if config.get("raw_path"):
            laureates = load_raw(config["raw_path"])
            source = config["raw_path"]
        else:
            laureates = fetch_laureates(
                url=config["api_url"], limit=config["limit"], params=config.get("filters"),
                delay=config["delay"], timeout=config["timeout"], max_records=config.get("max_records"),
            )
            source = config["api_url"]
        artifacts["raw_json"] = save_raw(laureates, os.path.join(run_dir, "laureates_raw.json"))
        run_log["fetch"] = {"returncode": 0, "duration_s": round(time.time() - t0, 2),
                            "records": len(laureates), "source": source}

        # Step 2: normalize
        current, t1 = "tables", time.time()
        tables = build_tables(laureates, language=config.get("language"))
        metrics = table_metrics(tables)
        run_log["tables"] = {"returncode": 0, "duration_s": round(time.time() - t1, 2), "metrics": metrics}
        run_log["summary"]["metrics"] = metrics

        # Step 3: write
        current, t2 = "write", time.time()
        paths = write_tables(tables, tables_dir, sep=sep)
        artifacts["tables_dir"] = tables_dir
        artifacts["tables"] = paths
        run_log["write"] = {"returncode": 0, "duration_s": round(time.time() - t2, 2)}

        # Step 4: eval
        current, t3 = "eval", time.time()
        thresholds_path = config.get("thresholds_path")
        report = eval_tables(tables_dir, sep=sep, thresholds_override=load_thresholds(thresholds_path),
                             out_dir=run_dir)
        artifacts["eval_report"] = report["report_path"]
        run_log["eval"] = {
            "returncode": 0,
            "duration_s": round(time.time() - t3, 2),
            "status_ok": report["status_ok"],
            "thresholds_path": thresholds_path if thresholds_path and os.path.exists(thresholds_path) else "",
        }
        run_log["summary"]["eval_status_ok"] = report["status_ok"]
        run_log["summary"]["eval_failed_rubric"] = failed_rubric(report)

        # Step 5: charts, skipped when the run dir already holds them
        if config.get("charts"):
            current, t4 = "analysis", time.time()
            cache_hit = not force and figures_present(run_dir)
            if not cache_hit:
                out = run_analysis(tables_dir, run_dir, sep=sep)
                artifacts.update(out)
            run_log["analysis"] = {"returncode": 0, "duration_s": round(time.time() - t4, 2), "cache_hit": cache_hit}

        # Step 6: publish
        current, t5 = "publish", time.time()
        artifacts["published_dir"] = _publish(paths, os.path.join(base_dir, "latest"))
        run_log["publish"] = {"returncode": 0, "duration_s": round(time.time() - t5, 2)}

        # Step 7: bundle
        if config.get("bundle"):
            current, t6 = "bundle", time.time()
            base_name = os.path.join(base_dir, f"run_{run_id}")
            artifacts["bundle_zip"] = shutil.make_archive(base_name, "zip", root_dir=run_dir)
            run_log["bundle"] = {"returncode": 0, "duration_s": round(time.time() - t6, 2)}
        current = None
    except Exception as e:
        logger.error("Step %s failed: %s", current, e)
        run_log[current] = {"returncode": 1, "error": str(e)}
        raise
    finally:
        run_log["summary"]["ok"] = current is None
        run_log["summary"]["failed_step"] = current
        run_log["summary"]["total_duration_s"] = round(time.time() - start, 2)
        out_path = os.path.join(base_dir, f"run_log_{run_id}.json")
        run_dir_log_path = os.path.join(run_dir, "run_log.json")
        artifacts["run_log_global"] = out_path
        artifacts["run_log_run_dir"] = run_dir_log_path
        _write_json(out_path, run_log)
        _write_json(run_dir_log_path, run_log)
        logger.info("Run log saved -> %s (and %s)", out_path, run_dir_log_path)
        _print_run_summary(run_log)

    return out_path


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Fetch Nobel laureates and write normalized tables")
    parser.add_argument("--output-dir", type=str, help="Base directory for runs and published tables")
    parser.add_argument("--limit", type=int, help="Records per API page")
    parser.add_argument("--delay", type=float, help="Seconds to sleep between page requests")
    parser.add_argument("--timeout", type=float, help="HTTP timeout per request")
    parser.add_argument("--max-records", type=int, help="Stop after this many laureates")
    parser.add_argument("--year-from", type=int, help="First prize year (nobelPrizeYear)")
    parser.add_argument("--year-to", type=int, help="Last prize year (yearTo)")
    parser.add_argument("--category", type=str, help="Prize category code, e.g. phy, che, med, lit, pea, eco")
    parser.add_argument("--language", type=str, help="Translation to keep (en, se, no) or 'all'")
    parser.add_argument("--sep", type=str, help="Output field separator; 'tab' for TSV")
    parser.add_argument("--from-raw", type=str, help="Replay a saved laureates_raw.json instead of fetching")
    parser.add_argument("--thresholds", type=str, help="Eval thresholds JSON path")
    parser.add_argument("--run-id", type=str, help="Run directory name (default: timestamp)")
    parser.add_argument("--charts", action="store_true", help="Render Altair charts into the run dir")
    parser.add_argument("--bundle", action="store_true", help="Zip the run dir")
    parser.add_argument("--force", action="store_true", help="Recompute cached steps")
    parser.add_argument("--log-level", type=str, help="Logging level")
    return parser


def config_from_args(args: argparse.Namespace) -> PipelineConfig:
    overrides = {
        "output_dir": args.output_dir,
        "limit": args.limit,
        "delay": args.delay,
        "timeout": args.timeout,
        "language": args.language,
        "sep": args.sep,
        "thresholds_path": args.thresholds,
        "log_level": args.log_level,
        "force": True if args.force else None,
        "max_records": args.max_records,
        "raw_path": args.from_raw,
        "run_id": args.run_id,
        "charts": args.charts,
        "bundle": args.bundle,
        "filters": {
            "nobelPrizeYear": args.year_from,
            "yearTo": args.year_to,
            "nobelPrizeCategory": args.category,
        },
    }
    return load_config(overrides)


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    config = config_from_args(args)
    logging.basicConfig(
        level=getattr(logging, str(config["log_level"]).upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    try:
        out_path = run_pipeline(config)
    except (requests.RequestException, NobelApiError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    print(f"Run complete. Log saved -> {out_path}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
