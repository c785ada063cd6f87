from catppuccin import PALETTE
from pydantic import BaseModel
from rich.theme import Theme

flavor = PALETTE.mocha


class ColorHex(BaseModel):
    """
    ColorHex class to hold the Catppuccin Mocha hex values rearden renders with.
    """

    mauve: str = flavor.colors.mauve.hex
    red: str = flavor.colors.red.hex
    peach: str = flavor.colors.peach.hex
    yellow: str = flavor.colors.yellow.hex
    green: str = flavor.colors.green.hex
    sky: str = flavor.colors.sky.hex
    blue: str = flavor.colors.blue.hex
    subtext0: str = flavor.colors.subtext0.hex
    overlay1: str = flavor.colors.overlay1.hex


COLOR_HEX = ColorHex()

# Styles picked up by RichHandler for each log level name
RICH_THEME = Theme(
    {
        "logging.level.debug": COLOR_HEX.overlay1,
        "logging.level.info": f"bold {COLOR_HEX.blue}",
        "logging.level.success": f"bold {COLOR_HEX.green}",
        "logging.level.warning": f"bold {COLOR_HEX.yellow}",
        "logging.level.error": f"bold {COLOR_HEX.red}",
        "log.time": COLOR_HEX.subtext0,
    }
)
