SAMPLE_TEXT = "\n".join([
    "The quick brown fox jumps over the lazy dog while the farmer watches",
    "from the porch and wonders why the dog never seems to mind the fox.",
    "Every morning the sun climbs over the hills and paints the valley gold,",
    "and the river carries the light downstream past mills and quiet towns.",
    "A good typist keeps their eyes on the text and lets their fingers find",
    "the keys by memory, trusting rhythm more than raw speed or luck.",
    "Mistakes are part of the race, but fixing them quickly keeps you moving",
    "forward, one word at a time, until the last line is finally behind you.",
    "When the clock runs out the score is simple: characters per second,",
    "counted only for the letters you typed correctly from start to finish.",
])


def load_race_text(config) -> str:
    """Race text from RACE_TEXT_PATH when configured, else the built-in sample."""
    path = config.get('RACE_TEXT_PATH')
    if path:
        with open(path, 'r', encoding='utf-8') as fh:
            text = fh.read().strip('\n')
        if text:
            return text
    return SAMPLE_TEXT
