#!/usr/bin/env python3
"""
Résumé Tailoring CLI

Tailors a LaTeX résumé category to a job description and compiles it through the
remote LaTeX service.

Commands:
    generate - Run the full pipeline for one job description
    compile  - Compile a .tex file through the remote service
    sections - Show the rewriteable sections and skill lines of a template

Examples:\n

    tailor_resume.py generate jd.txt --category swe --company "Acme Robotics"

    tailor_resume.py generate jd.txt -c swe --project p1 --project p2 --set bullets.min_keyword_hits=2

    tailor_resume.py compile outs/Jane_Doe_Acme.tex --cls templates/fed-res.cls

    tailor_resume.py sections templates/swe.tex
"""

import base64
from datetime import datetime
from pathlib import Path
from typing import List, Optional

import typer
from typing_extensions import Annotated

from resumefit.config import LOGS_PATH, load_settings
from resumefit.contexts.rendering.compiler import compile_remote
from resumefit.contexts.rendering.logger import setup_rendering_logger
from resumefit.contexts.targeting.logger import setup_targeting_logger
from resumefit.contexts.templating import class_filename, find_sections, find_skill_lines
from resumefit.contexts.templating.logger import setup_templating_logger
from resumefit.exceptions import ResumeFitError
from resumefit.pipeline import PipelineRequest, process_request
from resumefit.state import RESUMEFIT_DATA, ResumeDataStore, StatusStore

app = typer.Typer(
    help="Tailor LaTeX résumés to job descriptions and compile them to PDF",
    add_completion=False,
    invoke_without_command=True,
)


def _timestamp() -> str:
    return datetime.now().strftime("%Y%m%d_%H%M%S")


@app.callback()
def main(ctx: typer.Context):
    """Show help by default when no command is provided."""
    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
        raise typer.Exit()


@app.command("generate")
def generate_command(
    jd_file: Annotated[
        Path,
        typer.Argument(
            help="Text file holding the job description",
            exists=True,
            dir_okay=False,
            resolve_path=True,
        ),
    ],
    category: Annotated[
        str,
        typer.Option("--category", "-c", help="Category id of the template to tailor"),
    ],
    company: Annotated[
        str,
        typer.Option("--company", help="Company name (used in the PDF file name)"),
    ] = "",
    prompt: Annotated[
        str,
        typer.Option("--prompt", "-p", help="Extra instruction for the bullet rewrite"),
    ] = "",
    projects: Annotated[
        Optional[List[str]],
        typer.Option("--project", help="Project id to inject (repeatable)"),
    ] = None,
    data_file: Annotated[
        Path,
        typer.Option("--data", help="User data JSON (categories, projects, API key)"),
    ] = RESUMEFIT_DATA,
    output_dir: Annotated[
        Path,
        typer.Option("--output-dir", "-o", help="Directory for the PDF and final .tex"),
    ] = Path("outs/results"),
    config_file: Annotated[
        Optional[Path],
        typer.Option("--config", help="YAML overriding pipeline_defaults.yaml"),
    ] = None,
    overrides: Annotated[
        Optional[List[str]],
        typer.Option("--set", help="Dotlist override, e.g. skills.max_skill_deletions=0"),
    ] = None,
):
    """
    Tailor a category template to a job description and compile it.

    Writes <owner>_<company>.pdf and the matching .tex to the output directory.

    Examples:\n

        $ tailor_resume.py generate jd.txt -c swe --company Acme

        $ tailor_resume.py generate jd.txt -c swe --prompt "Emphasize leadership"
    """
    try:
        settings = load_settings(config_file, overrides)
    except ResumeFitError as e:
        typer.secho(f"Error: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)

    log_dir = LOGS_PATH / f"tailor_{_timestamp()}"
    setup_targeting_logger(log_dir, f"{settings.provider}:{settings.model or 'default'}")

    request = PipelineRequest(
        jd=jd_file.read_text(encoding="utf-8"),
        prompt=prompt,
        company=company,
        category_id=category,
        selected_project_ids=projects or [],
    )

    typer.secho(
        f"\nTailoring category '{category}' for {company or 'unnamed company'}",
        fg=typer.colors.BLUE,
        bold=True,
    )
    result = process_request(
        request,
        data=ResumeDataStore(data_file).load(),
        settings=settings,
        status=StatusStore(),
    )

    if "error" in result:
        typer.secho(f"✗ {result['error']}", fg=typer.colors.RED, bold=True, err=True)
        typer.echo(f"  Log: {log_dir}")
        raise typer.Exit(code=1)

    output_dir.mkdir(parents=True, exist_ok=True)
    pdf_path = output_dir / result["pdf_filename"]
    pdf_path.write_bytes(base64.b64decode(result["pdf_b64"]))
    tex_path = pdf_path.with_suffix(".tex")
    tex_path.write_text(result["tex"], encoding="utf-8")

    typer.secho("✓ Tailoring succeeded", fg=typer.colors.GREEN, bold=True)
    typer.echo(f"  PDF: {pdf_path}")
    typer.echo(f"  TeX: {tex_path}")
    typer.echo(f"  Log: {log_dir}")


@app.command("compile")
def compile_command(
    tex_file: Annotated[
        Path,
        typer.Argument(help="LaTeX document to compile", exists=True, dir_okay=False, resolve_path=True),
    ],
    cls_file: Annotated[
        Optional[Path],
        typer.Option("--cls", help="Class file uploaded next to the document", exists=True, dir_okay=False),
    ] = None,
    output: Annotated[
        Optional[Path],
        typer.Option("--output", "-o", help="PDF path (default: next to the .tex)"),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Show the compiler error excerpt"),
    ] = False,
):
    """
    Compile a .tex file through the remote LaTeX service.

    Examples:\n

        $ tailor_resume.py compile resume.tex --cls fed-res.cls
    """
    settings = load_settings()
    setup_rendering_logger(LOGS_PATH / f"render_{_timestamp()}", settings.compile_url)

    tex = tex_file.read_text(encoding="utf-8")
    cls_content = cls_file.read_text(encoding="utf-8") if cls_file else ""
    upload_name = cls_file.name if cls_file else class_filename(tex, settings.default_class_filename)

    try:
        result = compile_remote(tex, settings, cls_content=cls_content, class_filename=upload_name)
    except ResumeFitError as e:
        typer.secho("✗ Compilation failed", fg=typer.colors.RED, bold=True, err=True)
        message = str(e) if verbose else str(e).splitlines()[0]
        typer.secho(f"  {message}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)

    pdf_path = output or tex_file.with_suffix(".pdf")
    pdf_path.write_bytes(result.pdf_bytes)
    typer.secho("✓ Compilation succeeded", fg=typer.colors.GREEN, bold=True)
    if result.page_count is not None:
        typer.echo(f"  Pages: {result.page_count}")
    typer.echo(f"  PDF: {pdf_path}")


@app.command("sections")
def sections_command(
    tex_file: Annotated[
        Path,
        typer.Argument(help="LaTeX template to inspect", exists=True, dir_okay=False, resolve_path=True),
    ],
):
    """
    Show what the pipeline can rewrite in a template.

    Examples:\n

        $ tailor_resume.py sections templates/swe.tex
    """
    tex = tex_file.read_text(encoding="utf-8")
    settings = load_settings()
    setup_templating_logger(LOGS_PATH / f"sections_{_timestamp()}", tex_file.stem)

    sections = find_sections(tex)
    typer.secho(f"\nRewriteable sections ({len(sections)})", fg=typer.colors.BLUE, bold=True)
    for section in sections:
        typer.echo(f"  [{section.kind}] {section.name} ({len(section.bullets)} bullets)")
        for bullet in section.bullets:
            typer.echo(f"      • {bullet}")

    skill_lines = find_skill_lines(tex, list(settings.skill_labels) or None)
    typer.secho(f"\nSkill lines ({len(skill_lines)})", fg=typer.colors.BLUE, bold=True)
    for line in skill_lines:
        typer.echo(f"  {line.label}: {', '.join(line.items)}")
    typer.echo("")


if __name__ == "__main__":
    app()
