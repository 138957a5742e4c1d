"""Built-in profanity blocklist. Entries are already in normalized form."""

DEFAULT_BLOCKLIST = frozenset(
    [
        "arse",
        "arsehole",
        "ass",
        "asshat",
        "asshole",
        "bastard",
        "bitch",
        "bitches",
        "bloody",
        "bollocks",
        "bullshit",
        "cock",
        "cocksucker",
        "crap",
        "cunt",
        "damn",
        "dick",
        "dickhead",
        "dildo",
        "douche",
        "douchebag",
        "dumbass",
        "fag",
        "faggot",
        "fuck",
        "fucked",
        "fucker",
        "fuckers",
        "fucking",
        "fuckoff",
        "goddamn",
        "horseshit",
        "jackass",
        "jerkoff",
        "motherfucker",
        "motherfucking",
        "nigga",
        "nigger",
        "piss",
        "pissed",
        "prick",
        "pussy",
        "retard",
        "shit",
        "shite",
        "shithead",
        "shitty",
        "slut",
        "twat",
        "wanker",
        "whore",
    ]
)
