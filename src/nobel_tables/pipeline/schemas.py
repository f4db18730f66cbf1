from typing import TypedDict, Optional, Dict, List


class PipelineConfig(TypedDict, total=False):
    api_url: str
    limit: int
    delay: float
    timeout: float
    max_records: Optional[int]
    filters: Dict[str, str]
    output_dir: str
    language: Optional[str]
    sep: str
    thresholds_path: str
    raw_path: Optional[str]
    run_id: Optional[str]
    force: bool
    charts: bool
    bundle: bool
    log_level: str
    sources: Dict[str, str]


class StepLog(TypedDict, total=False):
    returncode: int
    duration_s: float
    error: str
    cache_hit: bool


class ArtifactMap(TypedDict, total=False):
    raw_json: str
    tables_dir: str
    tables: Dict[str, str]
    eval_report: str
    figures_dir: str
    brief_md: str
    published_dir: str
    bundle_zip: str
    config_json_run_dir: str
    run_log_global: str
    run_log_run_dir: str


class Summary(TypedDict, total=False):
    ok: bool
    total_duration_s: float
    run_id: str
    run_dir: str
    artifacts: ArtifactMap
    metrics: Dict[str, int]
    eval_status_ok: Optional[bool]
    eval_failed_rubric: List[str]
    failed_step: Optional[str]
