from pathlib import Path

from common.model.results import PipelineOutput
from common.support.reporting import NullReporter, Reporter
from export.paths import OutputPaths, build_output_paths
from export.plot import plot_top_deltas
from export.writers import write_table


def save_all_artifacts(
    results: PipelineOutput,
    out_dir: Path,
    *,
    reporter: Reporter | None = None,
) -> Path | None:
    """
    Persist all analysis artifacts.
    Returns the path to the first plot if one was generated.
    """
    rep: Reporter = reporter if reporter is not None else NullReporter()

    paths = build_output_paths(out_dir)
    paths.out_dir.mkdir(parents=True, exist_ok=True)

    rep.info(f"Writing outputs to: {paths.out_dir}")

    _write_tables(results, paths)
    return _write_plots(results, paths)


def _write_tables(results: PipelineOutput, paths: OutputPaths) -> None:
    write_table(results.merged_table, paths.merged_csv)
    for ranking in results.rankings:
        write_table(ranking.table, paths.delta_csv(ranking.metric))


def _write_plots(results: PipelineOutput, paths: OutputPaths) -> Path | None:
    first: Path | None = None
    for ranking in results.rankings:
        out = paths.delta_png(ranking.metric)
        if plot_top_deltas(ranking.table, ranking.metric, out_path=out) and first is None:
            first = out
    return first
