"""
Unit tests for Dockerfile reconstruction from layer history.
"""
import pytest
from docker.errors import ImageNotFound
from i2d.BUILDERS.recipe_builder import RecipeBuilder, clean_created_by, render_recipe
from i2d.MODELS.image_history import HistoryRecord


class TestCleanCreatedBy:
    """Tests for the created-by cleaning rewrites."""

    def test_nop_marker_stripped(self):
        assert clean_created_by("/bin/sh -c #(nop) WORKDIR /app") == "WORKDIR /app"

    def test_nop_marker_with_padded_keyword(self):
        assert clean_created_by("/bin/sh -c #(nop)  EXPOSE 80") == "EXPOSE 80"

    def test_shell_command_becomes_run(self):
        assert clean_created_by("/bin/sh -c echo hello") == "RUN /bin/sh -c echo hello"

    def test_run_prefix_not_doubled(self):
        """BuildKit records already carry the RUN keyword."""
        line = "RUN /bin/sh -c make install # buildkit"
        assert clean_created_by(line) == line

    def test_run_prefix_not_doubled_with_build_args(self):
        line = "RUN |1 VERSION=2 /bin/sh -c make # buildkit"
        assert clean_created_by(line) == line

    def test_nested_nop_markers_stripped(self):
        assert clean_created_by("/bin/sh -c /bin/sh -c #(nop) #(nop) WORKDIR /app") == "WORKDIR /app"

    def test_ampersand_run_split_once(self):
        assert clean_created_by("/bin/sh -c a &&& b") == "RUN /bin/sh -c a \\\n    &&& b"

    def test_and_operator_continued(self):
        result = clean_created_by("/bin/sh -c apt-get update && apt-get install -y curl && rm -rf /var/lib/apt/lists/*")
        assert result == (
            "RUN /bin/sh -c apt-get update \\\n"
            "    && apt-get install -y curl \\\n"
            "    && rm -rf /var/lib/apt/lists/*"
        )

    @pytest.mark.parametrize("keyword", [
        "ENV", "EXPOSE", "ARG", "LABEL", "USER", "CMD", "MAINTAINER", "ENTRYPOINT",
        "STOPSIGNAL", "COPY", "VOLUME", "WORKDIR", "ONBUILD", "HEALTHCHECK", "SHELL",
    ])
    def test_reserved_keyword_space_removed(self, keyword):
        assert clean_created_by(f"/bin/sh -c #(nop)  {keyword} x") == f"{keyword} x"

    def test_keyword_matched_as_whole_token(self):
        """A word that merely starts with a keyword keeps its leading space."""
        assert clean_created_by("/bin/sh -c #(nop)  ENVIRONMENT=prod") == " ENVIRONMENT=prod"

    def test_keyword_inside_command_untouched(self):
        line = "/bin/sh -c echo USER is root"
        assert clean_created_by(line) == "RUN /bin/sh -c echo USER is root"

    def test_exec_form_cmd(self):
        line = '/bin/sh -c #(nop)  CMD ["nginx" "-g" "daemon off;"]'
        assert clean_created_by(line) == 'CMD ["nginx" "-g" "daemon off;"]'

    def test_unknown_shape_passed_through(self):
        assert clean_created_by("COPY dir:abc in /srv") == "COPY dir:abc in /srv"
        assert clean_created_by("not an instruction") == "not an instruction"

    @pytest.mark.parametrize("line", [
        "/bin/sh -c #(nop)  EXPOSE 80",
        "/bin/sh -c apt-get update && apt-get install -y curl",
        "/bin/sh -c #(nop)  ENV PATH=/usr/local/bin:/usr/bin",
        "RUN /bin/sh -c a && b # buildkit",
        '/bin/sh -c #(nop)  ENTRYPOINT ["/docker-entrypoint.sh"]',
        "/bin/sh -c #(nop)  ENVIRONMENT=prod",
        "|1 VERSION=2 /bin/sh -c curl -sSL x | sh && true",
        "/bin/sh -c a &&& b &&&& c",
        "RUN |1 VERSION=2 /bin/sh -c make # buildkit",
    ])
    def test_cleaning_is_idempotent(self, line):
        once = clean_created_by(line)
        assert clean_created_by(once) == once


class TestRenderRecipe:
    """Tests for assembling the recipe text."""

    def test_history_rendered_oldest_first(self):
        history = [
            HistoryRecord(tags=[], created_by="/bin/sh -c #(nop)  EXPOSE 80"),
            HistoryRecord(tags=["base:1"], created_by="/bin/sh -c apt-get update && apt-get install -y curl"),
        ]
        assert render_recipe("base:1", history) == (
            "FROM base:1\n"
            "RUN /bin/sh -c apt-get update \\\n"
            "    && apt-get install -y curl\n"
            "EXPOSE 80\n"
        )

    def test_empty_created_by_skipped(self):
        history = [
            HistoryRecord(created_by=""),
            HistoryRecord(created_by="/bin/sh -c #(nop) USER app"),
            HistoryRecord(created_by=""),
        ]
        assert render_recipe("alpine:3", history) == "FROM alpine:3\nUSER app\n"

    def test_empty_history_only_from(self):
        assert render_recipe("scratch", []) == "FROM scratch\n"


class TestRecipeBuilder:
    """Tests for RecipeBuilder against an engine."""

    def test_build_from_engine_history(self, local_build):
        recipe = RecipeBuilder(local_build).build("sha256:app", "debian:bookworm")
        assert recipe == (
            "FROM debian:bookworm\n"
            "ADD file:1f4a in / \n"
            "RUN /bin/sh -c apt-get update \\\n"
            "    && apt-get install -y python3\n"
            "WORKDIR /app\n"
            "RUN /bin/sh -c pip install flask \\\n"
            "    && pip cache purge\n"
            "EXPOSE 8080\n"
            'CMD ["python" "app.py"]\n'
        )

    def test_build_propagates_engine_errors(self, fake_engine_cls):
        builder = RecipeBuilder(fake_engine_cls())
        with pytest.raises(ImageNotFound):
            builder.build("sha256:missing", "base:1")
