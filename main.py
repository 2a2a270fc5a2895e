import sys

from cli import parse_cli_args
from common.support.reporting import PrintReporter
from export.artifacts import save_all_artifacts
from export.console import DeltaReportPresenter, DeltaView
from export.open_file import open_plot
from pipeline import WindowError, execute_pipeline


def main(argv: list[str] | None = None) -> int:
    reporter = PrintReporter()

    try:
        app = parse_cli_args(argv)
        cfg = app.cfg
        results = execute_pipeline(cfg, reporter=reporter)
    except (WindowError, ValueError) as e:
        sys.exit(f"Error: {e}")

    presenter = DeltaReportPresenter(cfg.min_delta)
    for ranking in results.rankings:
        view = DeltaView(
            metric=ranking.metric,
            base=results.windows.base,
            comp=results.windows.comp,
            merged=results.merged,
        )
        presenter.present(ranking.deltas, view)

    if cfg.out_dir is not None:
        plot_path = save_all_artifacts(results, cfg.out_dir, reporter=reporter)
        if app.open_plot and plot_path is not None:
            open_plot(plot_path, reporter=reporter)
    elif app.open_plot:
        reporter.warning("no chart to open: charts are only written with an output directory")

    return 0


if __name__ == "__main__":
    sys.exit(main())
