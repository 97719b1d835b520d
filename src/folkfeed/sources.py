"""Built-in feed list and keyword vocabulary.

The vocabulary decides both inclusion and tags: an item is kept when its
text contains any of these terms, and every term found becomes a tag.
Order matters, since tags are emitted in vocabulary order.
"""

KEYWORDS = (
    "folklore",
    "myth",
    "legend",
    "faerie",
    "fairy",
    "witch",
    "foraging",
    "wild food",
    "hedgerow",
    "mushroom",
    "fungi",
    "seaweed",
)

FEEDS = (
    {
        "url": "https://www.eatweeds.co.uk/feed",
        "source": "Eatweeds (Foraging)",
    },
    {
        "url": "https://www.wildfooduk.com/articles/feed/",
        "source": "Wild Food UK (Foraging)",
    },
    {
        "url": "https://publicdomainreview.org/rss.xml",
        "source": "The Public Domain Review (Folklore & Culture)",
    },
    {
        "url": "https://www.mushroomguide.com/rss/news",
        "source": "Mushroom Guide (Mushrooms)",
    },
    {
        "url": "https://www.britishmyths.org.uk/feed/",
        "source": "British Myths (Folklore & Myth)",
    },
    {
        "url": "https://www.sfs.org.uk/feed/",
        "source": "Society for Storytelling",
    },
    {
        "url": "https://archaeology.co.uk/feed",
        "source": "Current Archaeology",
    },
    {
        "url": "https://the-past.com/feed/",
        "source": "The Past",
    },
    {
        "url": "https://news.google.com/rss/search?q=uk+foraging+when:7d&hl=en-GB&gl=GB&ceid=GB:en",
        "source": "Foraging News",
    },
)
