"""Main entry point for the Flute Tuner CLI."""

from typing import Dict, Optional

import click

from ..core.config import ConfigManager
from ..core.factory import ALL_DETECTORS, ComponentFactory
from ..detection_loop import FrameClock, ManualTickSignal
from ..logger import get_logger
from ..logging_config import setup_logging
from ..note_types import PitchEstimate
from ..note_utils import convert_note_notation, midi_to_frequency

logger = get_logger(__name__)

ALGORITHMS = ["autocorrelation", "yin", ALL_DETECTORS]
METER_WIDTH = 21  # Characters in the tuning meter, one slot per 5 cents


def tuning_meter(cents_off: int) -> str:
    """Text meter with a marker at the cents deviation, center is in tune."""
    half = METER_WIDTH // 2
    position = half + int(round(cents_off / 50 * half))
    position = max(0, min(METER_WIDTH - 1, position))
    slots = ["-"] * METER_WIDTH
    slots[half] = "|"
    slots[position] = "*"
    return "[" + "".join(slots) + "]"


def format_estimate(algorithm: str, estimate: PitchEstimate, use_flats: bool = False) -> str:
    """One display line for an estimate."""
    if not estimate.has_pitch or estimate.note is None:
        return f"{algorithm:>15}  {'---':<4}  {'':>9}  {'':>8}  clarity {estimate.clarity:.2f}"

    note = estimate.note
    name = convert_note_notation(note.full_note_name, to_flats=use_flats)
    target = midi_to_frequency(note.midi_number)
    return (
        f"{algorithm:>15}  {name:<4}  {estimate.frequency:7.1f}Hz  {note.cents_off:+4d} ct  "
        f"clarity {estimate.clarity:.2f}  {tuning_meter(note.cents_off)}  (target {target:.1f}Hz)"
    )


@click.group()
@click.option("--debug", is_flag=True, help="Enable debug logging")
@click.option(
    "--config-dir",
    type=click.Path(file_okay=False),
    default=None,
    help="Configuration directory (default: ~/.config/flute_tuner)",
)
@click.pass_context
def main(ctx, debug, config_dir):
    """Flute Tuner - real-time pitch detection for a monophonic instrument"""
    setup_logging("DEBUG" if debug else "WARNING")
    ctx.obj = {"config_dir": config_dir}


def _factory(ctx) -> ComponentFactory:
    return ComponentFactory(ConfigManager(ctx.obj["config_dir"]))


@main.command()
@click.option("--algorithm", "-a", type=click.Choice(ALGORITHMS), default="yin", help="Detector to run")
@click.option("--device", "-d", type=int, default=None, help="Audio input device ID")
@click.option("--sample-rate", type=int, default=None, help="Sample rate in Hz")
@click.option("--window-size", type=int, default=None, help="Samples per analysis window")
@click.option("--fps", type=float, default=30.0, help="Detection ticks per second")
@click.option("--flats", is_flag=True, help="Show flat notes instead of sharps")
@click.pass_context
def listen(ctx, algorithm, device, sample_rate, window_size, fps, flats):
    """Detect the pitch of live microphone input until Ctrl-C"""
    factory = _factory(ctx)
    last_lines: Dict[str, str] = {}

    def show(name: str, estimate: PitchEstimate) -> None:
        line = format_estimate(name, estimate, use_flats=flats)
        if last_lines.get(name) != line:
            last_lines[name] = line
            click.echo(line)

    try:
        source = factory.create_sample_source(
            "live", device_id=device, sample_rate=sample_rate, window_size=window_size
        )
        loop = factory.create_detection_loop(
            source, algorithm, tick_signal=FrameClock(fps), on_estimate=show
        )
    except ValueError as e:
        raise click.ClickException(str(e))

    names = ", ".join(d.name for d in loop.detectors)
    click.echo(f"Listening at {source.sample_rate}Hz with {names}; press Ctrl-C to stop")
    with source:
        try:
            loop.run()
        except KeyboardInterrupt:
            loop.stop()
    click.echo("Stopped")


@main.command()
@click.argument("file_path", type=click.Path(exists=True, dir_okay=False))
@click.option("--algorithm", "-a", type=click.Choice(ALGORITHMS), default="yin", help="Detector to run")
@click.option("--window-size", type=int, default=4096, help="Samples per analysis window")
@click.option("--hop-size", type=int, default=None, help="Samples between windows (default: window size)")
@click.option("--flats", is_flag=True, help="Show flat notes instead of sharps")
@click.pass_context
def analyze(ctx, file_path, algorithm, window_size, hop_size, flats):
    """Print the detected pitch of each window of an audio file"""
    factory = _factory(ctx)
    hop_size = hop_size or window_size

    try:
        source = factory.create_sample_source(
            "wav", file_path=file_path, window_size=window_size, hop_size=hop_size
        )
        loop = factory.create_detection_loop(source, algorithm, tick_signal=ManualTickSignal())
    except (ValueError, RuntimeError) as e:
        raise click.ClickException(str(e))

    def show(name: str, estimate: PitchEstimate) -> None:
        start = (loop.tick_count - 1) * hop_size / source.sample_rate
        click.echo(f"{start:8.3f}s {format_estimate(name, estimate, use_flats=flats)}")

    loop.events.on_estimate(show)
    loop.run()
    if loop.tick_count == 0:
        click.echo(f"File is shorter than one window of {window_size} samples")


@main.command()
def devices():
    """List audio input devices"""
    from ..audio.live import list_input_devices

    for index, name, default_rate in list_input_devices():
        click.echo(f"{index:3d}  {name}  ({default_rate:.0f}Hz)")


if __name__ == "__main__":
    main()
