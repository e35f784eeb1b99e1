"""Command-line interface for Spam Guard.

Provides ``train``, ``classify``, ``learn``, ``info`` and ``evaluate``
commands with rich terminal output using the ``click`` and ``rich``
libraries.

Usage::

    spam-guard train corpus.json
    spam-guard classify --sender "Prize Dept <winner@lottery.com>" --subject "You won"
    spam-guard learn --label ham --subject "Team lunch" --body "Friday at noon?"
    spam-guard evaluate corpus.json -k 5
"""

from __future__ import annotations

import dataclasses
import json
import logging
import sys
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from .classifier import SpamModel
from .config import ClassifierConfig, SpamGuardConfig, load_config
from .corpus import balance_corpus, load_corpus
from .evaluation import cross_validate, pool_metrics
from .extractors import Instance, parse_sender
from .models import EmailRecord, Label, ModelInfo, Prediction, TrainingSample
from .store import StoredModel, load_model, save_model
from .triage import Action, SpamTriage, Verdict

console = Console()
err_console = Console(stderr=True)


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


def _fail(error: Exception | str) -> None:
    console.print(f"[bold red]Error:[/] {error}")
    sys.exit(1)


def _classifier_config(
    config: SpamGuardConfig,
    alpha: Optional[float],
    min_df: Optional[int],
) -> ClassifierConfig:
    overrides = {}
    if alpha is not None:
        overrides["alpha"] = alpha
    if min_df is not None:
        overrides["min_df"] = min_df
    return dataclasses.replace(config.classifier, **overrides)


def _build_instance(
    sender: Optional[str],
    subject: Optional[str],
    body: Optional[str],
    text: Optional[str],
) -> Instance:
    if text is not None:
        return text
    if not any((sender, subject, body)):
        raise click.UsageError("Provide --text or at least one of --sender, --subject, --body.")
    name, address = parse_sender(sender)
    return EmailRecord(
        sender_name=name,
        sender_email=address,
        subject=subject or "",
        body=body or "",
    )


def _parse_headers(raw: tuple[str, ...]) -> dict[str, list[str]]:
    headers: dict[str, list[str]] = {}
    for item in raw:
        name, sep, value = item.partition(":")
        if not sep:
            raise click.BadParameter(f"expected 'Name: value', got {item!r}", param_hint="--header")
        headers.setdefault(name.strip(), []).append(value.strip())
    return headers


# ------------------------------------------------------------------
# Commands
# ------------------------------------------------------------------

@click.group()
@click.version_option(package_name="spam-guard")
@click.option("--config", "config_path", type=click.Path(dir_okay=False, path_type=Path),
              default=None, help="Path to a TOML config file.")
@click.option("--verbose", "-v", is_flag=True, help="Show debug logging.")
@click.pass_context
def main(ctx: click.Context, config_path: Path | None, verbose: bool) -> None:
    """🛡️ Spam Guard — TF-IDF Naive Bayes spam filtering for email.

    Train a model on labeled messages, classify new ones, and teach it
    from corrections.
    """
    _setup_logging(verbose)
    try:
        ctx.obj = load_config(config_path)
    except ValueError as e:
        _fail(e)


@main.command()
@click.argument("corpus", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--model", "-m", "model_path", type=click.Path(dir_okay=False, path_type=Path),
              default=None, help="Where to save the model.")
@click.option("--alpha", type=float, default=None, help="Laplace smoothing constant.")
@click.option("--min-df", type=int, default=None, help="Minimum document frequency.")
@click.option("--balance", is_flag=True, help="Balance spam and ham counts before fitting.")
@click.option("--seed", type=int, default=None, help="Shuffle seed used with --balance.")
@click.option("--output", "-o", type=click.Choice(["rich", "json"]), default="rich",
              help="Output format.")
@click.pass_obj
def train(
    config: SpamGuardConfig,
    corpus: Path,
    model_path: Path | None,
    alpha: float | None,
    min_df: int | None,
    balance: bool,
    seed: int | None,
    output: str,
) -> None:
    """Fit a new model on a labeled corpus and save it.

    Example: spam-guard train corpus.json --min-df 1
    """
    path = model_path or config.resolved_model_path

    with console.status("[bold blue]Training classifier...", spinner="dots"):
        try:
            classifier_config = _classifier_config(config, alpha, min_df)
            samples = load_corpus(corpus)
            if balance:
                samples = balance_corpus(
                    [s for s in samples if s.label is Label.SPAM],
                    [s for s in samples if s.label is Label.HAM],
                    max_per_class=config.max_training_samples,
                    seed=seed,
                )
            model = SpamModel.fit(samples, classifier_config)
            save_model(model, path, samples)
        except Exception as e:
            _fail(e)

    if output == "json":
        click.echo(json.dumps({"model_path": str(path), **model.info().to_dict()}, indent=2))
    else:
        _render_info(model.info(), path)


@main.command()
@click.option("--model", "-m", "model_path", type=click.Path(dir_okay=False, path_type=Path),
              default=None, help="Model file to use.")
@click.option("--sender", default=None, help='Sender, e.g. "Name <user@example.com>".')
@click.option("--subject", default=None, help="Subject line.")
@click.option("--body", default=None, help="Body text.")
@click.option("--text", default=None, help="Raw text, classified without field prefixes.")
@click.option("--header", "headers", multiple=True,
              help='Message header as "Name: value" (repeatable).')
@click.option("--top", type=int, default=10, show_default=True,
              help="Number of top features to show.")
@click.option("--output", "-o", type=click.Choice(["rich", "json"]), default="rich",
              help="Output format.")
@click.pass_obj
def classify(
    config: SpamGuardConfig,
    model_path: Path | None,
    sender: str | None,
    subject: str | None,
    body: str | None,
    text: str | None,
    headers: tuple[str, ...],
    top: int,
    output: str,
) -> None:
    """Classify one message and show the triage verdict.

    Example: spam-guard classify --subject "Free prize" --body "claim now"
    """
    instance = _build_instance(sender, subject, body, text)
    header_map = _parse_headers(headers)

    try:
        stored = load_model(model_path or config.resolved_model_path)
    except Exception as e:
        _fail(e)

    model = stored.model
    prediction = model.predict(instance)
    verdict = SpamTriage(model, config.triage).evaluate(instance, header_map)
    features = model.top_features(instance, top)

    if output == "json":
        click.echo(json.dumps({
            "prediction": prediction.to_dict(),
            "verdict": verdict.to_dict(),
            "top_features": [{"word": w, "score": round(s, 4)} for w, s in features],
        }, indent=2, ensure_ascii=False))
    else:
        _render_prediction(prediction, verdict, features)


@main.command()
@click.option("--label", type=click.Choice([label.value for label in Label]), required=True,
              help="Correct label for the message.")
@click.option("--model", "-m", "model_path", type=click.Path(dir_okay=False, path_type=Path),
              default=None, help="Model file to update.")
@click.option("--sender", default=None, help='Sender, e.g. "Name <user@example.com>".')
@click.option("--subject", default=None, help="Subject line.")
@click.option("--body", default=None, help="Body text.")
@click.option("--text", default=None, help="Raw text (legacy sample form).")
@click.pass_obj
def learn(
    config: SpamGuardConfig,
    label: str,
    model_path: Path | None,
    sender: str | None,
    subject: str | None,
    body: str | None,
    text: str | None,
) -> None:
    """Add a labeled message to the training data and refit.

    Example: spam-guard learn --label spam --subject "Cheap meds"
    """
    instance = _build_instance(sender, subject, body, text)
    if isinstance(instance, str):
        sample = TrainingSample(label=Label(label), text=instance)
    else:
        sample = TrainingSample(label=Label(label), email=instance)
    if not sample.is_usable:
        raise click.UsageError("--text must not be blank.")

    path = model_path or config.resolved_model_path

    with console.status("[bold blue]Retraining classifier...", spinner="dots"):
        try:
            if path.exists():
                stored = load_model(path)
                classifier_config = stored.model.config if stored.model.is_trained else config.classifier
            else:
                stored = StoredModel(model=SpamModel())
                classifier_config = config.classifier

            training_data = stored.training_data + [sample]
            model = SpamModel.fit(training_data, classifier_config)
            save_model(model, path, training_data)
        except Exception as e:
            _fail(e)

    console.print(f"[green]Learned 1 {label} sample.[/] Training size: {len(training_data)}")


@main.command()
@click.option("--model", "-m", "model_path", type=click.Path(dir_okay=False, path_type=Path),
              default=None, help="Model file to inspect.")
@click.option("--output", "-o", type=click.Choice(["rich", "json"]), default="rich",
              help="Output format.")
@click.pass_obj
def info(config: SpamGuardConfig, model_path: Path | None, output: str) -> None:
    """Show the training state of a saved model."""
    path = model_path or config.resolved_model_path
    try:
        stored = load_model(path)
    except Exception as e:
        _fail(e)

    model_info = stored.model.info()
    if output == "json":
        click.echo(json.dumps(model_info.to_dict(), indent=2))
    else:
        _render_info(model_info, path)


@main.command()
@click.argument("corpus", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("-k", "folds", type=int, default=5, show_default=True, help="Number of folds.")
@click.option("--seed", type=int, default=42, show_default=True, help="Fold assignment seed.")
@click.option("--alpha", type=float, default=None, help="Laplace smoothing constant.")
@click.option("--min-df", type=int, default=None, help="Minimum document frequency.")
@click.option("--threshold", type=click.FloatRange(0.0, 1.0), default=None,
              help="Minimum spam score to count as flagged (default: any spam label).")
@click.option("--output", "-o", type=click.Choice(["rich", "json"]), default="rich",
              help="Output format.")
@click.pass_obj
def evaluate(
    config: SpamGuardConfig,
    corpus: Path,
    folds: int,
    seed: int,
    alpha: float | None,
    min_df: int | None,
    threshold: float | None,
    output: str,
) -> None:
    """Cross-validate a model configuration on a labeled corpus.

    Spam is the positive class; the FP rate is the share of ham flagged.

    Example: spam-guard evaluate corpus.json -k 5 --threshold 0.7
    """
    with console.status("[bold blue]Cross-validating...", spinner="dots"):
        try:
            classifier_config = _classifier_config(config, alpha, min_df)
            samples = load_corpus(corpus)
            results = cross_validate(
                samples, k=folds, config=classifier_config, seed=seed, threshold=threshold,
            )
        except Exception as e:
            _fail(e)

    pooled = pool_metrics(results)
    if output == "json":
        click.echo(json.dumps(
            {"folds": [m.to_dict() for m in results], "pooled": pooled.to_dict()},
            indent=2,
        ))
        return

    table = Table(title=f"Cross-validation: {corpus.name}")
    table.add_column("Fold", justify="right", width=5)
    table.add_column("Accuracy", justify="right")
    table.add_column("Precision", justify="right")
    table.add_column("Recall", justify="right")
    table.add_column("F1", justify="right")
    table.add_column("FP rate", justify="right")
    for i, m in enumerate(results, 1):
        table.add_row(
            str(i), f"{m.accuracy:.2%}", f"{m.precision:.4f}", f"{m.recall:.4f}",
            f"{m.f1:.4f}", f"{m.false_positive_rate:.2%}",
        )
    console.print(table)

    if results:
        console.print(
            f"Pooled accuracy: [bold]{pooled.accuracy:.2%}[/]  "
            f"Spam F1: [bold]{pooled.f1:.4f}[/]  "
            f"Ham FP rate: [bold]{pooled.false_positive_rate:.2%}[/] "
            f"({pooled.false_positives}/{pooled.ham_support})"
        )



# ------------------------------------------------------------------
# Rich rendering helpers
# ------------------------------------------------------------------

_ACTION_STYLE = {
    Action.MOVE: "bold red",
    Action.FLAG: "bold yellow",
    Action.NONE: "dim green",
}


def _render_prediction(
    prediction: Prediction,
    verdict: Verdict,
    features: list[tuple[str, float]],
) -> None:
    console.print()

    if prediction.is_unknown:
        console.print(Panel(
            "The model has not been trained yet. Run [bold]spam-guard train[/] first.",
            title="🛡️ Prediction: unknown",
            border_style="yellow",
        ))
    else:
        style = "bold red" if prediction.label == Label.SPAM.value else "bold green"
        scores = " | ".join(f"{k}: {v:.1%}" for k, v in prediction.scores.items())
        console.print(Panel(
            f"[{style}]{prediction.label.upper()}[/] ({prediction.probability:.1%})\n{scores}",
            title="🛡️ Prediction",
            border_style="blue",
        ))

    action_style = _ACTION_STYLE.get(verdict.action, "")
    method = f" via {verdict.method.value}" if verdict.method else ""
    console.print(f"Action: [{action_style}]{verdict.action.value.upper()}[/]{method}")

    if features:
        table = Table(title="Top Features", show_lines=False)
        table.add_column("#", justify="right", width=4)
        table.add_column("Feature", style="cyan")
        table.add_column("TF-IDF", justify="right")
        for i, (word, score) in enumerate(features, 1):
            table.add_row(str(i), word, f"{score:.4f}")
        console.print(table)
    console.print()


def _render_info(model_info: ModelInfo, path: Path) -> None:
    status = "[bold green]trained[/]" if model_info.is_trained else "[bold yellow]untrained[/]"
    distribution = ", ".join(f"{k}: {v}" for k, v in model_info.class_distribution.items())
    console.print(Panel(
        f"Status: {status}\n"
        f"Vocabulary: {model_info.vocabulary_size} features\n"
        f"Training size: {model_info.training_size} documents ({distribution})",
        title=f"🛡️ {path.name}",
        border_style="blue",
    ))


if __name__ == "__main__":
    main()
