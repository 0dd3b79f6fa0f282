"""Group story (group status v2) builder."""

from ..descriptors import GroupStory
from ..errors import ComposerError, MissingCollaboratorError
from ..kinds import Kind
from .base import BuildContext


async def build(descriptor: GroupStory, ctx: BuildContext) -> dict:
    if descriptor.has_message:
        content = descriptor.content
    else:
        if ctx.content_generator is None:
            raise MissingCollaboratorError(
                "group story without a ready message needs a content generator",
                kind=Kind.GROUP_STATUS, stage="generate",
            )
        try:
            content = await ctx.content_generator.generate(descriptor.content)
        except ComposerError:
            raise
        except Exception as e:
            raise ComposerError(
                f"content generation failed: {e}", kind=Kind.GROUP_STATUS, stage="generate"
            ) from e

    return {"groupStatusMessageV2": {"message": content.get("message") or content}}
