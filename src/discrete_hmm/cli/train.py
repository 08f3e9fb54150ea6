"""
Training CLI command.

Trains a model on one observation sequence and scores further sequences
against it.
"""

from typing import List, Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from ..exceptions import DiscreteHMMError
from ..hmm.matrix import StochasticMatrix
from ..hmm.model import HiddenMarkovModel
from ..train.baum_welch import BaumWelchTrainer
from .errors import CLIError, handle_cli_error, parse_labels

console = Console()


def matrix_table(title: str, matrix: StochasticMatrix) -> Table:
    """Render a stochastic matrix with its row and column labels."""
    table = Table(title=title)
    table.add_column("", style="bold")
    for label in matrix.column_labels():
        table.add_column(str(label), justify="right")
    for label in matrix.row_labels():
        row = matrix.row(label)
        table.add_row(str(label), *(f"{p:.6f}" for p in row.values()))
    return table


def train_command(
    ctx: typer.Context,
    states: str = typer.Option(
        ...,
        "--states",
        "-s",
        help="Comma separated hidden states, e.g. S1,S2"
    ),
    observations: str = typer.Option(
        ...,
        "--observations",
        "-o",
        help="Comma separated observation alphabet, e.g. A,B"
    ),
    sequence: str = typer.Option(
        ...,
        "--sequence",
        help="Comma separated training sequence, e.g. A,B,A,B"
    ),
    max_iterations: Optional[int] = typer.Option(
        None,
        "--max-iter",
        "-i",
        min=0,
        help="Maximum Baum-Welch iterations, 0 skips training (default: hmm.max_iterations)"
    ),
    min_probability: Optional[float] = typer.Option(
        None,
        "--min-probability",
        "-m",
        help="Floor for transition and emission probabilities"
    ),
    score: Optional[List[str]] = typer.Option(
        None,
        "--score",
        help="Sequence to score after training (can be used multiple times)"
    ),
    name: str = typer.Option(
        "Unnamed HMM",
        "--name",
        "-n",
        help="Name of the model"
    )
):
    """
    Train a discrete HMM on one observation sequence.

    Examples:
    ```
    discrete-hmm train --states S1,S2 --observations A,B --sequence A,B,A,B,A,B

    discrete-hmm train -s S1,S2 -o A,B --sequence A,B,A,B --max-iter 50 --score A,B
    ```
    """
    debug = ctx.meta.get("debug", False)
    try:
        model = HiddenMarkovModel(
            parse_labels(states, "--states"),
            parse_labels(observations, "--observations"),
            name=name
        )
        training_sequence = parse_labels(sequence, "--sequence")
        score_sequences = [parse_labels(s, "--score") for s in score or []]
        # Unset options fall back to the hmm config section
        trainer = BaumWelchTrainer(max_iterations=max_iterations,
                                   min_probability=min_probability)

        console.print(Panel.fit(
            f"[bold]Model Training[/bold]\n"
            f"Model: {name}\n"
            f"States: {', '.join(map(str, model.states))}\n"
            f"Observations: {', '.join(map(str, model.observations))}\n"
            f"Sequence length: {len(training_sequence)}\n"
            f"Max Iterations: {trainer.max_iterations}\n"
            f"Min Probability: {trainer.min_probability:g}",
            border_style="blue"
        ))

        with Progress(SpinnerColumn(), TextColumn("{task.description}"),
                      console=console, transient=True) as progress:
            task = progress.add_task("Training...", total=None)

            def on_iteration(iteration, likelihood, parameters):
                progress.update(task, description=f"Iteration {iteration}: P={likelihood:.6e}")

            result = model.train(training_sequence, trainer=trainer, callback=on_iteration)

        summary = Table(title="Training Summary")
        summary.add_column("Metric", style="bold")
        summary.add_column("Value", justify="right")
        summary.add_row("Final state", result.state.value)
        summary.add_row("Iterations", str(result.iterations))
        summary.add_row("Trained", str(model.is_trained))
        if result.final_likelihood is not None:
            summary.add_row("Final likelihood", f"{result.final_likelihood:.6e}")
        console.print(summary)

        initial = Table(title="Initial State Probabilities")
        initial.add_column("State", style="bold")
        initial.add_column("P", justify="right")
        for state, p in model.initial_state_probabilities.items():
            initial.add_row(str(state), f"{p:.6f}")
        console.print(initial)
        console.print(matrix_table("State Transition Matrix", model.transition_matrix))
        console.print(matrix_table("Confusion Matrix", model.confusion_matrix))

        if score_sequences:
            scores = Table(title="Sequence Likelihoods")
            scores.add_column("Sequence")
            scores.add_column("Likelihood", justify="right")
            scores.add_column("Log-likelihood", justify="right")
            for observed in score_sequences:
                scores.add_row(",".join(observed),
                               f"{model.likelihood(observed):.6e}",
                               f"{model.log_likelihood(observed):.6f}")
            console.print(scores)

    except (CLIError, DiscreteHMMError) as e:
        handle_cli_error(e, "train", debug)
