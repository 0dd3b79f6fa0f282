"""Poll result snapshot builder. Vote counts always go out as strings."""

from ..descriptors import PollResult
from ..kinds import Kind
from .base import BuildContext


def count_text(count) -> str:
    if isinstance(count, float) and count.is_integer():
        count = int(count)
    return str(count)


async def build(descriptor: PollResult, ctx: BuildContext) -> dict:
    d = ctx.defaults
    return {
        "pollResultSnapshotMessage": {
            "name": descriptor.name,
            "pollVotes": [
                {"optionName": vote.option_name, "optionVoteCount": count_text(vote.option_vote_count)}
                for vote in descriptor.votes
            ],
            "contextInfo": {
                "isForwarded": True,
                "forwardingScore": 1,
                "forwardedNewsletterMessageInfo": {
                    "newsletterName": descriptor.newsletter_name or d.get(Kind.POLL_RESULT, "newsletter_name"),
                    "newsletterJid": descriptor.newsletter_jid or d.get(Kind.POLL_RESULT, "newsletter_jid"),
                    "serverMessageId": 1000,
                    "contentType": "UPDATE",
                },
            },
        }
    }
