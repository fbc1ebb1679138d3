import json
from pathlib import Path
from typing import Optional

import click

from numhist.config import print_config, settings
from numhist.exceptions import NumericError
from numhist.histogram import (
    Histogram,
    HistogramBuilder,
    Significance,
    SummaryOptions,
)
from numhist.objects import Range
from numhist.units import Unit
from numhist.utils import cli as cli_tools


@click.group()
def cli():
    pass


@cli.command(
    help=(
        "Build a histogram from a file of raw samples and print its summary "
        "statistics. Samples are read from a json or yaml list, or from a text "
        "file with one sample per line."
    ),
    context_settings={"auto_envvar_prefix": "NUMHIST"},
)
@click.argument(
    "samples_file", type=click.Path(exists=True, dir_okay=False, path_type=Path)
)
@click.option(
    "--unit",
    type=cli_tools.UnitParamType(),
    default="ms_smallerIsBetter",
    help="Token of the unit the samples are measured in.",
)
@click.option(
    "--min",
    "min_boundary",
    type=float,
    default=None,
    help="Lowest bin boundary. Requires --max and --bins.",
)
@click.option(
    "--max",
    "max_boundary",
    type=float,
    default=None,
    help="Highest bin boundary. Requires --min and --bins.",
)
@click.option(
    "--bins",
    type=int,
    default=None,
    help=(
        "Number of central bins between --min and --max. If no layout is "
        "given, the bins are fitted to the samples."
    ),
)
@click.option(
    "--exponential",
    is_flag=True,
    default=False,
    help="Space the bins exponentially instead of linearly.",
)
@click.option(
    "--percentile",
    "percentiles",
    type=float,
    multiple=True,
    help="Percentile within [0, 1] to add to the summary. Can be repeated.",
)
@click.option(
    "--summary-options",
    callback=cli_tools.parse_json,
    default=None,
    help='JSON object of summary options to change, e.g. \'{"nans": true}\'.',
)
@click.option(
    "--summary-options-file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="json or yaml file of summary options, applied before --summary-options.",
)
@click.option(
    "--output",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Write the serialized histogram as json to this path.",
)
def summarize(
    samples_file: Path,
    unit: Unit,
    min_boundary: Optional[float],
    max_boundary: Optional[float],
    bins: Optional[int],
    exponential: bool,
    percentiles: tuple[float, ...],
    summary_options: Optional[dict],
    summary_options_file: Optional[Path],
    output: Optional[Path],
):
    samples = cli_tools.load_samples(samples_file)
    layout = (min_boundary, max_boundary, bins)

    try:
        if all(value is None for value in layout):
            histogram = Histogram.build_from_samples(unit, samples)
        elif any(value is None for value in layout):
            raise click.UsageError("--min, --max and --bins must be used together.")
        else:
            create = (
                HistogramBuilder.create_exponential
                if exponential
                else HistogramBuilder.create_linear
            )
            histogram = create(
                unit, Range.from_explicit_range(min_boundary, max_boundary), bins
            ).build()
            histogram.add_samples(samples)

        if summary_options_file:
            histogram.customize_summary_options(
                SummaryOptions.from_file(summary_options_file)
            )
        if summary_options:
            histogram.customize_summary_options(summary_options)
        if percentiles:
            histogram.customize_summary_options({"percentile": list(percentiles)})

        scalars = histogram.get_summarized_scalars()
    except ValueError as err:
        raise click.ClickException(str(err)) from err

    for name, scalar in scalars.items():
        click.echo(f"{name}: {scalar}")

    if output:
        output.write_text(histogram.to_json())
        click.echo(f"Histogram written to {output}")


@cli.command(
    help=(
        "Compare two serialized histograms with a Mann-Whitney U test and "
        "print whether they differ significantly."
    ),
)
@click.argument(
    "baseline", type=click.Path(exists=True, dir_okay=False, path_type=Path)
)
@click.argument(
    "candidate", type=click.Path(exists=True, dir_okay=False, path_type=Path)
)
@click.option(
    "--alpha",
    type=float,
    default=settings.histogram.default_alpha,
    help="p-values below this threshold are significant.",
)
def compare(baseline: Path, candidate: Path, alpha: float):
    baseline_numeric = cli_tools.load_numeric(baseline)
    candidate_numeric = cli_tools.load_numeric(candidate)

    if not isinstance(baseline_numeric, Histogram):
        raise click.ClickException(f"{baseline} does not hold a histogram.")

    try:
        significance = baseline_numeric.get_difference_significance(
            candidate_numeric, alpha
        )
    except (NumericError, TypeError) as err:
        raise click.ClickException(str(err)) from err

    click.echo(Significance(significance).name.lower())


@cli.command(
    help=(
        "Merge serialized histograms and scalars from left to right and write "
        "the result as json."
    ),
)
@click.argument(
    "inputs",
    nargs=-1,
    required=True,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option(
    "--output",
    type=click.Path(dir_okay=False, path_type=Path),
    required=True,
    help="Path to write the merged histogram to.",
)
def merge(inputs: tuple[Path, ...], output: Path):
    numerics = [cli_tools.load_numeric(path) for path in inputs]
    merged = numerics[0]

    try:
        for numeric in numerics[1:]:
            merged = merged.merge(numeric)
    except NumericError as err:
        raise click.ClickException(str(err)) from err

    output.write_text(json.dumps(merged.to_dict()))
    click.echo(f"Merged {len(numerics)} numerics into {output}")


@cli.command(
    help=(
        "Print out the available configuration settings that can be set "
        "through environment variables."
    )
)
def config():
    print_config()


if __name__ == "__main__":
    cli()
