"""
Builders for reconstructing a Dockerfile from the layer history of an image.
"""
import re
from typing import List
from ..MODELS.image_history import HistoryRecord

NOP_MARKER = "/bin/sh -c #(nop) "

RESERVED_INSTRUCTIONS = (
    "ENV",
    "EXPOSE",
    "ARG",
    "LABEL",
    "USER",
    "CMD",
    "MAINTAINER",
    "ENTRYPOINT",
    "STOPSIGNAL",
    "COPY",
    "VOLUME",
    "WORKDIR",
    "ONBUILD",
    "HEALTHCHECK",
    "SHELL",
)

# Shell invocations not already turned into a RUN instruction
SHELL_PREFIX = re.compile(r"(?<!RUN )/bin/sh -c")
# && operators not already preceded by a line continuation or inside a run of &
AND_OPERATOR = re.compile(r"(?<!\\\n    )(?<!&)&&")
LINE_CONTINUATION = "\\\n    &&"
KEYWORD_INDENT = re.compile(
    r"^ +(?=(?:%s)\b)" % "|".join(RESERVED_INSTRUCTIONS), re.MULTILINE
)

def clean_created_by(created_by: str) -> str:
    """
    Turns the created-by text of a history record into a Dockerfile instruction.

    The rewrites are applied in order, each one relying on the previous:
    the no-op marker of declarative instructions is dropped, remaining
    shell invocations become explicit RUN instructions, chained commands
    are split over continuation lines and the space left in front of
    declarative keywords is removed. Text matching none of these shapes is
    returned unchanged, and cleaning an already cleaned line is a no-op.

    :param created_by: The created-by text of a layer.
    :return: The instruction text, possibly spanning several lines.
    """
    steps = created_by
    # Removing a marker can join the text around it into a new one
    while NOP_MARKER in steps:
        steps = steps.replace(NOP_MARKER, "")
    # BuildKit records already start with RUN, build args included
    if not steps.startswith("RUN "):
        steps = SHELL_PREFIX.sub("RUN /bin/sh -c", steps)
    steps = AND_OPERATOR.sub(lambda m: LINE_CONTINUATION, steps)
    steps = KEYWORD_INDENT.sub("", steps)
    return steps

def render_recipe(base: str, history: List[HistoryRecord]) -> str:
    """
    Renders a recipe from a newest-first history, oldest layer first.

    :param base: The tag written in the FROM instruction.
    :param history: Layer history as listed by the engine, newest first.
    :return: The recipe text, every line newline terminated.
    """
    lines = [f"FROM {base}"]
    for record in reversed(history):
        # Metadata-only layers carry no creation command
        if not record.created_by:
            continue
        lines.append(clean_created_by(record.created_by))
    return "".join(f"{line}\n" for line in lines)

class RecipeBuilder:
    """
    Reconstructs an approximate Dockerfile from the layer history of an image.
    """
    def __init__(self, engine):
        """
        Initializes the RecipeBuilder.

        :param engine: Engine client providing ``get_history(image_id)``.
        """
        self.engine = engine

    def build(self, image_id: str, base: str) -> str:
        """
        Reconstructs the recipe of an image.

        Errors from the engine are propagated as raised.

        :param image_id: Content identifier of the image.
        :param base: The anchor tag to build FROM.
        :return: The recipe text.
        """
        history = self.engine.get_history(image_id)
        return render_recipe(base, history)
