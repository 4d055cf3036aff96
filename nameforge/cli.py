"""CLI rozhraní pro generátor jmen fiktivních kultur."""

import logging
import random
import threading
from pathlib import Path
from typing import Any

import click
import yaml
from dotenv import load_dotenv
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.progress import BarColumn, Progress, SpinnerColumn, TextColumn
from rich.table import Table

from nameforge.config import ALGORITHMS, Settings, load_settings
from nameforge.errors import NameForgeError
from nameforge.generator import (
    ExpansionContext,
    GrammarEngine,
    MarkovRegistry,
    NameGenerator,
    NameSynthesizer,
    StaticContextResolver,
)
from nameforge.llm import (
    LexemeGenerator,
    LLMStyleJudge,
    check_provider_availability,
    get_default_model,
    get_provider,
    list_providers,
)
from nameforge.llm.base import LLMConfig
from nameforge.models import EntityAttributes
from nameforge.optimizer import OptimizationResult, ProgressReport, optimize, optimize_batch
from nameforge.registry import CultureRegistry, CultureSnapshot
from nameforge.scoring import evaluate_fitness

PROJECT_ROOT = Path(__file__).parent.parent

# Load environment variables from .env file
load_dotenv(PROJECT_ROOT / ".env")

console = Console()


# =============================================================================
# HELPERS
# =============================================================================


def setup_logging(settings: Settings) -> None:
    """Route library logging through rich."""
    logging.basicConfig(
        level=settings.logging.level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=settings.logging.show_path)],
        force=True,
    )


def resolve_path(path: str) -> Path:
    """Path as given, or relative to the project root if it does not exist."""
    candidate = Path(path)
    if candidate.exists() or candidate.is_absolute():
        return candidate
    return PROJECT_ROOT / candidate


class Culture:
    """Culture file loaded into a registry snapshot plus Markov models and context."""

    def __init__(self, path: Path):
        with open(path, encoding="utf-8") as f:
            data: dict[str, Any] = yaml.safe_load(f) or {}

        registry = CultureRegistry()
        registry.load(data)
        self.culture_id: str | None = data.get("culture_id")
        self.snapshot: CultureSnapshot = registry.snapshot()
        self.markov = MarkovRegistry.from_corpora(data.get("markov_corpora") or {})
        self.context: dict[str, str] = {str(k): str(v) for k, v in (data.get("context") or {}).items()}


def get_culture(ctx: click.Context) -> Culture:
    if "culture" not in ctx.obj:
        settings: Settings = ctx.obj["settings"]
        path = resolve_path(ctx.obj.get("culture_path") or settings.culture)
        if not path.exists():
            raise click.ClickException(f"Soubor kultury nenalezen: {path}")
        try:
            ctx.obj["culture"] = Culture(path)
        except NameForgeError as e:
            raise click.ClickException(f"Neplatná kultura: {e.message}") from e
    return ctx.obj["culture"]


def parse_pairs(pairs: tuple[str, ...]) -> dict[str, str]:
    """Parse KEY=VALUE options."""
    values = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            raise click.BadParameter(f"Očekáván tvar KLÍČ=HODNOTA, dostal jsem: {pair}")
        values[key.strip()] = value.strip()
    return values


def llm_config(settings: Settings, provider: str | None, model: str | None) -> LLMConfig:
    """Settings' LLM config with CLI overrides applied."""
    config = settings.llm
    if provider:
        config.provider = provider
        if not model:
            config.model = get_default_model(provider)
    if model:
        config.model = model
    return config


def score_color(score: float) -> str:
    return "green" if score >= 0.7 else ("yellow" if score >= 0.4 else "red")


def print_breakdown(breakdown: dict[str, float], title: str) -> None:
    table = Table(title=title)
    table.add_column("Metrika", style="cyan")
    table.add_column("Skóre", justify="right")
    for metric, value in breakdown.items():
        color = score_color(value)
        table.add_row(metric, f"[{color}]{value:.3f}[/{color}]")
    console.print(table)


def write_yaml(path: str, data: dict[str, Any]) -> None:
    with open(path, "w", encoding="utf-8") as f:
        yaml.safe_dump(data, f, allow_unicode=True, sort_keys=False)
    console.print(f"[green]Uloženo do: {path}[/green]")


# =============================================================================
# COMMANDS
# =============================================================================


@click.group()
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=True),
    help="Cesta ke konfiguračnímu souboru (výchozí: config.yaml)",
)
@click.option("--kultura", "-k", default=None, help="Soubor kultury (přepíše config)")
@click.pass_context
def cli(ctx: click.Context, config: str | None, kultura: str | None) -> None:
    """Generátor jmen pro fiktivní kultury.

    Syntetizuje jména z fonotaktických domén, rozvíjí jmenné gramatiky
    a ladí parametry domén metaheuristickými optimalizátory.

    Podporuje více LLM providerů: anthropic, openai, ollama, lmstudio, gemini.
    """
    ctx.ensure_object(dict)
    settings = load_settings(config)
    ctx.obj["settings"] = settings
    ctx.obj["culture_path"] = kultura
    setup_logging(settings)


@cli.command("generuj")
@click.argument("domena")
@click.option("--pocet", "-n", default=20, help="Počet jmen k vygenerování")
@click.option("--seed", "-s", type=int, default=None, help="Seed pro reprodukovatelné výsledky")
@click.option("--detail", "-d", is_flag=True, help="Zobraz strukturu a uvolněná omezení")
@click.option("--vystup", "-o", type=click.Path(), default=None, help="Soubor pro export")
@click.pass_context
def generate(ctx: click.Context, domena: str, pocet: int, seed: int | None, detail: bool, vystup: str | None) -> None:
    """Vygeneruj jména z fonotaktické domény.

    Příklady:
        nameforge generuj sylvan_core --pocet 10 --seed 7
    """
    culture = get_culture(ctx)
    try:
        synthesizer = NameSynthesizer(culture.snapshot.domain(domena))
    except NameForgeError as e:
        raise click.ClickException(e.message) from e

    rng = random.Random(seed)
    results = [synthesizer.synthesize_detailed(rng) for _ in range(pocet)]

    table = Table(title=f"Jména z domény {domena}")
    table.add_column("#", style="dim")
    table.add_column("Jméno", style="bold cyan")
    if detail:
        table.add_column("Kořen")
        table.add_column("Struktura")
        table.add_column("Uvolnění", style="yellow")
    for i, result in enumerate(results, 1):
        row = [str(i), result.name]
        if detail:
            row += [result.root, result.structure, ", ".join(result.relaxations) or "-"]
        table.add_row(*row)
    console.print(table)

    if vystup:
        with open(vystup, "w", encoding="utf-8") as f:
            for result in results:
                f.write(f"{result.name}\n")
        console.print(f"[green]Export uložen do: {vystup}[/green]")


@cli.command("rozvin")
@click.argument("gramatika")
@click.option("--pocet", "-n", default=10, help="Počet rozvinutí")
@click.option("--seed", "-s", type=int, default=None, help="Seed pro reprodukovatelné výsledky")
@click.option("--symbol", default=None, help="Počáteční symbol (výchozí: start gramatiky)")
@click.option("--druh", default=None, help="Druh entity pro výběr slovníků")
@click.option("--kontext", "-x", multiple=True, help="Hodnota kontextu KLÍČ=HODNOTA")
@click.pass_context
def expand_grammar(
    ctx: click.Context,
    gramatika: str,
    pocet: int,
    seed: int | None,
    symbol: str | None,
    druh: str | None,
    kontext: tuple[str, ...],
) -> None:
    """Rozviň jmennou gramatiku.

    Příklady:
        nameforge rozvin sylvan_places --pocet 5
        nameforge rozvin sylvan_titles -x leader=Aelwen
    """
    settings: Settings = ctx.obj["settings"]
    culture = get_culture(ctx)
    engine = GrammarEngine(settings.grammar.max_depth, settings.grammar.default_fallback)
    resolver = StaticContextResolver({**culture.context, **parse_pairs(kontext)})
    context = ExpansionContext(
        snapshot=culture.snapshot,
        rng=random.Random(seed),
        culture_id=culture.culture_id,
        entity=EntityAttributes(kind=druh),
        context_resolver=resolver,
        markov_source=culture.markov,
    )

    try:
        grammar = culture.snapshot.grammar(gramatika)
        engine.validate(grammar, culture.snapshot, culture.markov)
        names = [engine.expand(grammar, context, symbol) for _ in range(pocet)]
    except NameForgeError as e:
        raise click.ClickException(e.message) from e

    for name in names:
        console.print(f"  [bold cyan]{name}[/bold cyan]")


@cli.command("jmena")
@click.argument("profil")
@click.option("--pocet", "-n", default=10, help="Počet jmen")
@click.option("--seed", "-s", type=int, default=None, help="Seed pro reprodukovatelné výsledky")
@click.option("--druh", default=None, help="Druh entity (např. settlement, npc)")
@click.option("--podtyp", default=None, help="Podtyp entity")
@click.option("--vyznamnost", default=None, help="Význačnost entity (např. major)")
@click.option("--stitek", "-t", multiple=True, help="Štítek entity (lze opakovat)")
@click.option("--kontext", "-x", multiple=True, help="Hodnota kontextu KLÍČ=HODNOTA")
@click.option("--zalozni", default=None, help="Záložní profil, když profil nic nevybere")
@click.pass_context
def generate_for_entity(
    ctx: click.Context,
    profil: str,
    pocet: int,
    seed: int | None,
    druh: str | None,
    podtyp: str | None,
    vyznamnost: str | None,
    stitek: tuple[str, ...],
    kontext: tuple[str, ...],
    zalozni: str | None,
) -> None:
    """Vygeneruj jména pro entitu podle strategického profilu.

    Příklady:
        nameforge jmena sylvan_default --druh settlement --stitek coastal
    """
    settings: Settings = ctx.obj["settings"]
    culture = get_culture(ctx)
    generator = NameGenerator(
        culture.snapshot,
        engine=GrammarEngine(settings.grammar.max_depth, settings.grammar.default_fallback),
        context_resolver=StaticContextResolver({**culture.context, **parse_pairs(kontext)}),
        markov_source=culture.markov,
        fallback_profile_id=zalozni,
    )
    entity = EntityAttributes(kind=druh, subtype=podtyp, prominence=vyznamnost, tags=tuple(stitek))

    try:
        result = generator.generate(profil, entity, pocet, culture.culture_id, seed)
    except NameForgeError as e:
        raise click.ClickException(e.message) from e

    table = Table(title=f"Jména podle profilu {profil}")
    table.add_column("#", style="dim")
    table.add_column("Jméno", style="bold cyan")
    for i, name in enumerate(result.names, 1):
        table.add_row(str(i), name)
    console.print(table)

    usage = ", ".join(f"{kind}: {count}" for kind, count in result.strategy_usage.most_common())
    console.print(f"[dim]Použité strategie: {usage}[/dim]")


@cli.command("fitness")
@click.argument("domena")
@click.option("--seed", "-s", type=int, default=None, help="Seed vzorkování")
@click.option("--styl", default=None, help="Popis stylu pro LLM hodnocení (volitelné)")
@click.option("--ukazka", default=10, help="Počet ukázkových jmen")
@click.pass_context
def show_fitness(ctx: click.Context, domena: str, seed: int | None, styl: str | None, ukazka: int) -> None:
    """Ohodnoť doménu: kapacita, rozptyl, odlišnost, vyslovitelnost, délka.

    Příklady:
        nameforge fitness sylvan_core
        nameforge fitness sylvan_core --styl "měkká elfská jména"
    """
    settings: Settings = ctx.obj["settings"]
    culture = get_culture(ctx)
    judge = None
    if styl:
        judge = LLMStyleJudge(get_provider(settings.llm), styl, settings.llm.batch_size, settings.fitness.seed)

    try:
        domain = culture.snapshot.domain(domena)
        with console.status("Vzorkuji jména..."):
            report = evaluate_fitness(
                domain,
                culture.snapshot.siblings_of(domain),
                settings.fitness,
                settings.weights,
                judge,
                seed,
            )
    except NameForgeError as e:
        raise click.ClickException(e.message) from e

    color = score_color(report.score)
    console.print(Panel(f"[bold {color}]{report.score:.4f}[/bold {color}]", title=f"Fitness domény {domena}"))
    print_breakdown(report.breakdown, "Metriky")
    console.print(f"[dim]Vzorek: {report.sample_size}, unikátních: {report.unique_count}[/dim]")
    if report.skipped:
        console.print(f"[yellow]Přeskočeno: {', '.join(report.skipped)}[/yellow]")
    if ukazka:
        console.print(f"[dim]Ukázka: {', '.join(report.names[:ukazka])}[/dim]")


def _run_with_progress(run, description: str):
    """Run an optimization with a rich progress bar fed by ProgressReport."""
    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TextColumn("{task.fields[best]}"),
        console=console,
    ) as progress:
        task = progress.add_task(description, total=None, best="")
        lock = threading.Lock()

        def on_progress(report: ProgressReport) -> None:
            with lock:
                progress.update(
                    task,
                    total=report.total or None,
                    completed=report.iteration,
                    best=f"nejlepší {report.best_fitness:.4f}",
                )

        return run(on_progress)


def print_results(results: list[OptimizationResult]) -> None:
    table = Table(title="Výsledky optimalizace")
    table.add_column("Doména", style="bold cyan")
    table.add_column("Algoritmus")
    table.add_column("Počáteční", justify="right")
    table.add_column("Výsledná", justify="right")
    table.add_column("Zlepšení", justify="right")
    table.add_column("Hodnocení", justify="right")
    for result in results:
        improvement = result.improvement
        color = "green" if improvement > 0 else "dim"
        table.add_row(
            result.domain_id,
            result.algorithm,
            f"{result.initial_fitness:.4f}",
            f"{result.final_fitness:.4f}",
            f"[{color}]{improvement:+.4f}[/{color}]",
            str(result.evaluations),
        )
    console.print(table)


@cli.command("optimalizuj")
@click.argument("domeny", nargs=-1)
@click.option(
    "--algoritmus",
    "-a",
    type=click.Choice(ALGORITHMS),
    default=None,
    help="Algoritmus (přepíše config)",
)
@click.option("--iterace", "-i", type=int, default=None, help="Počet iterací / generací")
@click.option("--seed", "-s", type=int, default=None, help="Seed optimalizace")
@click.option("--vystup", "-o", type=click.Path(), default=None, help="Zapiš optimalizované domény do YAML")
@click.pass_context
def run_optimizer(
    ctx: click.Context,
    domeny: tuple[str, ...],
    algoritmus: str | None,
    iterace: int | None,
    seed: int | None,
    vystup: str | None,
) -> None:
    """Optimalizuj parametry domén.

    Bez zadaných domén optimalizuje všechny domény kultury paralelně.
    Původní soubor kultury se nemění; výsledek lze uložit přes --vystup.

    Příklady:
        nameforge optimalizuj sylvan_core --algoritmus ga --iterace 20
        nameforge optimalizuj --algoritmus bayes -o optimalizovane.yaml
    """
    settings: Settings = ctx.obj["settings"]
    culture = get_culture(ctx)
    config = settings.optimizer
    if algoritmus:
        config.algorithm = algoritmus
    if iterace is not None:
        config.iterations = iterace
    if seed is not None:
        config.seed = seed

    try:
        domains = [culture.snapshot.domain(d) for d in domeny] or culture.snapshot.list_domains()
    except NameForgeError as e:
        raise click.ClickException(e.message) from e
    if not domains:
        raise click.ClickException("Kultura neobsahuje žádné domény.")

    console.print(f"[bold]Optimalizuji {len(domains)} domén(y) algoritmem {config.algorithm}...[/bold]")

    if len(domains) == 1:
        domain = domains[0]
        try:
            result = _run_with_progress(
                lambda on_progress: optimize(
                    domain,
                    settings.fitness,
                    settings.weights,
                    config,
                    culture.snapshot.siblings_of(domain),
                    on_progress=on_progress,
                ),
                f"Optimalizace {domain.id}",
            )
        except NameForgeError as e:
            raise click.ClickException(e.message) from e
        results = [result]
    else:
        outcome = _run_with_progress(
            lambda on_progress: optimize_batch(
                domains, settings.fitness, settings.weights, config, on_progress=on_progress
            ),
            "Optimalizace domén",
        )
        results = [outcome.results[d.id] for d in domains if d.id in outcome.results]
        for domain_id, message in outcome.errors.items():
            console.print(f"[red]Doména {domain_id} selhala: {message}[/red]")

    print_results(results)
    for result in results:
        if result.final_breakdown:
            print_breakdown(result.final_breakdown, f"Metriky {result.domain_id}")

    if vystup and results:
        write_yaml(
            vystup,
            {
                "culture_id": culture.culture_id,
                "domains": [r.optimized_config.to_dict() for r in results],
            },
        )


@cli.command("shluky")
@click.argument("domena")
@click.option("--seed", "-s", type=int, default=None, help="Seed vzorkování")
@click.option("--max", "max_suggestions", type=int, default=None, help="Maximální počet návrhů")
@click.pass_context
def suggest_clusters(ctx: click.Context, domena: str, seed: int | None, max_suggestions: int | None) -> None:
    """Navrhni oblíbené souhláskové shluky pro doménu.

    Příklady:
        nameforge shluky sylvan_core --max 3
    """
    settings: Settings = ctx.obj["settings"]
    culture = get_culture(ctx)
    config = settings.optimizer
    config.algorithm = "cluster"
    if seed is not None:
        config.seed = seed
    if max_suggestions is not None:
        config.max_suggestions = max_suggestions

    try:
        domain = culture.snapshot.domain(domena)
        with console.status("Hledám shluky..."):
            result = optimize(
                domain, settings.fitness, settings.weights, config, culture.snapshot.siblings_of(domain)
            )
    except NameForgeError as e:
        raise click.ClickException(e.message) from e

    if not result.suggestions:
        console.print("[yellow]Žádné nové shluky nenalezeny.[/yellow]")
        return

    table = Table(title=f"Návrhy shluků pro {domena}")
    table.add_column("Shluk", style="bold cyan")
    table.add_column("Zdroj")
    table.add_column("Jistota")
    table.add_column("Výskyt", justify="right")
    table.add_column("Důvod")
    for s in result.suggestions:
        table.add_row(s.cluster, s.source, s.confidence, str(s.frequency or "-"), s.reason)
    console.print(table)
    console.print(
        f"Fitness před: {result.initial_fitness:.4f}, po: {result.final_fitness:.4f} "
        f"({result.improvement:+.4f})"
    )


@cli.command("lexemy")
@click.argument("seznam")
@click.argument("tema")
@click.option("--pocet", "-n", default=20, help="Počet slov")
@click.option("--kultura-id", "kultury", multiple=True, help="Kultura, pro kterou seznam platí")
@click.option("--druh", "druhy", multiple=True, help="Druh entity, pro který seznam platí")
@click.option(
    "--provider",
    "-p",
    type=click.Choice(list_providers()),
    default=None,
    help="LLM provider (přepíše config)",
)
@click.option("--model", "-m", default=None, help="Model (přepíše config)")
@click.option("--vystup", "-o", type=click.Path(), default=None, help="Zapiš seznam do YAML")
@click.pass_context
def generate_lexemes(
    ctx: click.Context,
    seznam: str,
    tema: str,
    pocet: int,
    kultury: tuple[str, ...],
    druhy: tuple[str, ...],
    provider: str | None,
    model: str | None,
    vystup: str | None,
) -> None:
    """Vygeneruj slovník (lexeme list) pomocí LLM.

    Příklady:
        nameforge lexemy sylvan_nature "lesní rostliny a zvířata" -n 30
    """
    settings: Settings = ctx.obj["settings"]
    config = llm_config(settings, provider, model)
    available, message = check_provider_availability(config)
    if not available:
        raise click.ClickException(message)

    console.print(f"[dim]Provider: {config.provider}, Model: {config.model}[/dim]")
    generator = LexemeGenerator(get_provider(config))
    try:
        with console.status("Generuji slova..."):
            lexeme_list = generator.generate(
                seznam, tema, pocet, kultury or ("*",), druhy or ("*",)
            )
    except ValueError as e:
        raise click.ClickException(str(e)) from e

    console.print(Panel(", ".join(lexeme_list.entries), title=f"Slovník {seznam}"))
    if vystup:
        write_yaml(vystup, {"lexeme_lists": [lexeme_list.to_dict()]})


@cli.command("providery")
def list_available_providers() -> None:
    """Zobraz dostupné LLM providery a jejich stav."""
    console.print("\n[bold]Dostupní LLM provideři:[/bold]\n")

    providers_info = {
        "anthropic": ("Claude modely", "ANTHROPIC_API_KEY"),
        "openai": ("GPT modely", "OPENAI_API_KEY"),
        "ollama": ("Lokální modely", "http://localhost:11434"),
        "lmstudio": ("Lokální modely", "http://localhost:1234/v1"),
        "gemini": ("Google Gemini", "GOOGLE_API_KEY"),
    }

    table = Table()
    table.add_column("Provider", style="cyan")
    table.add_column("Popis")
    table.add_column("Výchozí model")
    table.add_column("Požadavek")
    table.add_column("Stav")

    for name in list_providers():
        desc, requirement = providers_info.get(name, ("", ""))
        default_model = get_default_model(name)
        available, _ = check_provider_availability(LLMConfig(provider=name, model=default_model))
        status = "[green]OK[/green]" if available else "[red]Nedostupný[/red]"
        table.add_row(name, desc, default_model, requirement, status)

    console.print(table)
    console.print("\n[dim]Tip: Nastav provider v config.yaml nebo použij --provider u příkazu lexemy.[/dim]")


def main() -> None:
    """Entry point."""
    cli(obj={})


if __name__ == "__main__":
    main()
