from discord import app_commands

from xpbot.commands.botconfig import setup_botconfig
from xpbot.commands.buycrate import setup_buycrate
from xpbot.commands.givexp import setup_givexp
from xpbot.commands.leaderboard import setup_leaderboard, setup_perkboard
from xpbot.commands.myinfo import setup_myinfo
from xpbot.commands.opencrate import setup_opencrate
from xpbot.commands.resetallboards import setup_resetallboards
from xpbot.services.economy import Economy


def setup_commands(tree: app_commands.CommandTree, economy: Economy) -> None:
    setup_botconfig(tree)
    setup_buycrate(tree)
    setup_givexp(tree, economy)
    setup_leaderboard(tree)
    setup_myinfo(tree)
    setup_opencrate(tree, economy)
    setup_perkboard(tree)
    setup_resetallboards(tree)
