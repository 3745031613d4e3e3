"""
Unit tests for the LaTeX structure parser (resumefit.contexts.templating.structure).
"""

import pytest

from resumefit.contexts.templating.structure import (
    discover_skill_labels,
    extract_bullets,
    find_section,
    find_sections,
    find_skill_line,
    find_skill_lines,
    render_itemize_body,
    replace_section_body,
    replace_skill_items,
    section_key,
)

PROJECT_TEX = r"""
\resumeProjectHeading
  {\textbf{Route Planner} $|$ \emph{Python, OR-Tools} \href{https://example.com}{\underline{Link}}}{2023}
  \begin{itemize}[leftmargin=10pt]
    \item Solved vehicle routing for 40 depots
  \end{itemize}
"""


@pytest.mark.unit
class TestFindSections:
    def test_template_sections(self, template_tex):
        sections = find_sections(template_tex)
        assert [s.name for s in sections] == ["Acme Corp", "Globex"]
        assert [len(s.bullets) for s in sections] == [3, 1]
        assert sections[0].kind == "experience"
        assert sections[0].bullets[1] == r"Reduced API latency by 30\% through caching"

    def test_offsets_point_at_itemize_body(self, template_tex):
        section = find_sections(template_tex)[0]
        body = template_tex[section.body_start:section.body_end]
        assert body.lstrip().startswith(r"\item Built data pipelines")
        assert template_tex[section.body_end:].startswith(r"\end{itemize}")

    def test_project_heading_name_is_bold_title(self):
        sections = find_sections(PROJECT_TEX)
        assert len(sections) == 1
        assert sections[0].name == "Route Planner"
        assert sections[0].kind == "project"

    def test_heading_without_list_is_skipped(self):
        tex = (
            "\\resumeSubheading{Solo}{X}{Y}{Z}\n"
            "\\resumeSubheading{Acme}{X}{Y}{Z}\n"
            "\\begin{itemize}\n  \\item Only bullet\n\\end{itemize}\n"
        )
        assert [s.name for s in find_sections(tex)] == ["Acme"]

    def test_empty_list_is_skipped(self):
        tex = "\\resumeSubheading{Acme}{X}{Y}{Z}\n\\begin{itemize}\n\\end{itemize}\n"
        assert find_sections(tex) == []

    def test_nested_list_items_stay_in_parent_bullet(self):
        tex = (
            "\\resumeSubheading{Acme}{X}{Y}{Z}\n"
            "\\begin{itemize}\n"
            "  \\item Parent\n"
            "  \\begin{itemize}\n"
            "    \\item Child\n"
            "  \\end{itemize}\n"
            "  \\item Sibling\n"
            "\\end{itemize}\n"
        )
        bullets = find_sections(tex)[0].bullets
        assert len(bullets) == 2
        assert bullets[0].startswith("Parent")
        assert "\\item Child" in bullets[0]
        assert bullets[1] == "Sibling"


@pytest.mark.unit
class TestBulletRoundTrip:
    @pytest.mark.parametrize(
        "bullets",
        [
            ["Only one bullet"],
            ["First", r"Second with 30\% and \textbf{bold}", "Third"],
        ],
    )
    def test_render_then_extract(self, bullets):
        assert extract_bullets(render_itemize_body(bullets)) == bullets

    def test_last_bullet_without_trailing_newline(self):
        assert extract_bullets("\n  \\item First\n  \\item Second") == ["First", "Second"]

    def test_inline_item_is_not_a_boundary(self):
        assert extract_bullets("\n  \\item Uses the word \\item inline") == ["Uses the word \\item inline"]

    def test_replace_keeps_surrounding_markup(self, template_tex):
        section = find_sections(template_tex)[0]
        new_tex = replace_section_body(template_tex, section, ["X", "Y", "Z"])

        assert "\\begin{itemize}[leftmargin=10pt,itemsep=2pt]\n      \\item X\n" in new_tex
        assert "      \\item Z\n    \\end{itemize}" in new_tex
        assert new_tex[: section.body_start] == template_tex[: section.body_start]
        assert find_sections(new_tex)[0].bullets == ["X", "Y", "Z"]
        assert find_sections(new_tex)[1].bullets == find_sections(template_tex)[1].bullets

    def test_replace_with_same_bullets_is_identity(self, template_tex):
        section = find_sections(template_tex)[0]
        assert replace_section_body(template_tex, section, section.bullets) == template_tex


@pytest.mark.unit
class TestSectionResolution:
    def test_section_key(self):
        assert section_key("Acme Corp. (3)") == "acme corp"
        assert section_key(r"\textbf{R\&D Lab}") == "r d lab"

    def test_find_section_exact_then_key(self, template_tex):
        assert find_section(template_tex, "Acme Corp").name == "Acme Corp"
        assert find_section(template_tex, "acme corp (3)").name == "Acme Corp"
        assert find_section(template_tex, "Initech") is None


@pytest.mark.unit
class TestSkillLines:
    def test_braced_skill_line(self, template_tex):
        line = find_skill_line(template_tex, "Programming Languages")
        assert line.label == "Programming Languages"
        assert line.items == ["Python", "Go", "SQL"]
        assert template_tex[line.items_start:line.items_end] == "Python, Go, SQL"

    def test_plain_skill_line(self):
        tex = "\\textbf{Databases}: Postgres, Redis \\\\\n\\textbf{Tools}: Git\n"
        line = find_skill_line(tex, "Databases")
        assert line.items == ["Postgres", "Redis"]
        assert find_skill_line(tex, "Tools").items == ["Git"]

    def test_label_with_reserved_character(self):
        tex = "\\textbf{R\\&D Tools}{: MATLAB, Simulink}"
        assert find_skill_line(tex, "R&D Tools").items == ["MATLAB", "Simulink"]
        assert find_skill_line(tex, "R\\&D  Tools").items == ["MATLAB", "Simulink"]

    def test_missing_label(self, template_tex):
        assert find_skill_line(template_tex, "Certifications") is None
        assert find_skill_line(template_tex, "   ") is None

    def test_replace_items_keeps_label(self, template_tex):
        line = find_skill_line(template_tex, "Programming Languages")
        new_tex = replace_skill_items(template_tex, line, ["Rust", "Go"])
        assert "\\textbf{Programming Languages}{: Rust, Go}" in new_tex
        assert find_skill_line(new_tex, "Frameworks and Libraries").items == ["Django", "React"]

    def test_discover_labels_in_skills_section(self, template_tex):
        assert discover_skill_labels(template_tex) == [
            "Programming Languages",
            "Frameworks and Libraries",
            "Cloud Platforms and Deployment",
        ]

    def test_find_skill_lines_skips_absent_labels(self, template_tex):
        lines = find_skill_lines(template_tex, ["Programming Languages", "Certifications"])
        assert [line.label for line in lines] == ["Programming Languages"]
