"""
Keyword tables used for feature extraction and candidate scoring.

Topic keywords match as substrings of the lowercased text, so very short
keywords are avoided. Every other table matches whole tokens. Declaration
order is significant: it breaks ties wherever counts are equal.
"""

from typing import Dict, List

TOPIC_KEYWORDS: Dict[str, List[str]] = {
    "family": [
        "family", "wife", "martha", "married", "spouse", "kids", "children",
        "grandkid", "grandchild", "daughter", "grandson", "elara", "finn",
    ],
    "war": [
        "the war", "wartime", "military", "army", "signal corps", "soldier",
        "battle", "veteran",
    ],
    "code": [
        "code", "coding", "program", "computer", "fortran", "lisp", "algorithm",
        "debug", "software", "punch card", "compiler", "lattice", "recursion",
    ],
    "technology": [
        "technology", "tech", "quantum", "internet", "phone", "tablet", "modern",
        "social media", "gadget", "artificial intelligence", "robot",
    ],
    "health": [
        "health", "sick", "doctor", "hospital", "heart", "medicine", "aging",
        "tired",
    ],
    "wisdom": [
        "purpose", "meaning", "wisdom", "advice", "lesson", "what matters", "life",
    ],
    "history": [
        "history", "back then", "in my day", "old days", "years ago", "decade",
        "the sixties", "the seventies",
    ],
    "science": [
        "science", "physics", "math", "experiment", "research", "universe",
        "weather",
    ],
}

POSITIVE_WORDS = {
    "love", "like", "good", "great", "wonderful", "happy", "glad", "beautiful",
    "proud", "enjoy", "amazing", "fantastic", "nice", "kind", "thanks", "thank",
    "grateful", "fun", "excellent", "best", "warm", "lovely", "brilliant",
    "delighted", "cherish", "treasure",
}

NEGATIVE_WORDS = {
    "hate", "bad", "sad", "terrible", "awful", "angry", "upset", "worried",
    "afraid", "scared", "lonely", "sick", "pain", "hurt", "miss", "lost",
    "horrible", "worst", "cry", "sorry", "difficult", "broken",
}

URGENT_WORDS = {
    "urgent", "emergency", "immediately", "asap", "hurry", "critical", "quickly",
}

ABSTRACT_WORDS = {
    "meaning", "purpose", "idea", "concept", "soul", "truth", "wisdom", "theory",
    "philosophy", "love", "freedom", "time", "life", "existence", "beauty",
    "justice", "memory", "pattern", "patterns", "logic", "faith", "hope",
}

CONCRETE_WORDS = {
    "computer", "machine", "card", "kettle", "light", "house", "table", "phone",
    "tablet", "car", "door", "book", "clock", "radio", "valve", "valves", "dog",
    "garden", "kitchen", "pudding", "hands", "chair", "tree", "food",
}

# valence category -> emotion -> cue words
EMOTION_LEXICON: Dict[str, Dict[str, List[str]]] = {
    "positive": {
        "joy": ["happy", "glad", "joy", "delighted", "cheerful", "laugh", "fun"],
        "love": ["love", "adore", "cherish", "dear", "darling", "sweetheart"],
        "gratitude": ["thanks", "thank", "grateful", "appreciate"],
        "pride": ["proud", "accomplished", "achievement"],
        "hope": ["hope", "hopeful", "wish", "someday"],
        "curiosity": ["curious", "wonder", "interested", "fascinating"],
    },
    "negative": {
        "sadness": ["sad", "miss", "lonely", "cry", "grief", "lost", "sorry"],
        "anger": ["angry", "mad", "furious", "annoyed", "hate"],
        "fear": ["afraid", "scared", "worried", "anxious", "nervous", "fear"],
    },
    "ambivalent": {
        "nostalgia": ["remember", "memories", "nostalgic", "reminisce", "childhood"],
        "surprise": ["surprised", "wow", "unexpected", "amazing"],
    },
}

TEMPORAL_MARKERS: Dict[str, List[str]] = {
    "past": ["was", "were", "used", "ago", "yesterday", "remember", "once", "had", "did"],
    "present": ["is", "am", "are", "now", "today", "currently"],
    "future": ["will", "going", "tomorrow", "soon", "plan", "someday", "next"],
    "continuous": ["always", "still", "ever", "forever", "constantly", "often"],
}

STOPWORDS = {
    "a", "an", "the", "and", "or", "but", "if", "of", "to", "in", "on", "at",
    "for", "with", "about", "as", "by", "from", "into", "is", "am", "are", "was",
    "were", "be", "been", "being", "it", "its", "it's", "this", "that", "these",
    "those", "i", "i'm", "me", "my", "you", "your", "you're", "we", "our", "us",
    "he", "she", "him", "her", "they", "them", "their", "do", "does", "did",
    "have", "has", "had", "so", "not", "no", "yes", "just", "what", "how", "why",
    "when", "where", "who", "which", "can", "could", "would", "will", "should",
    "tell", "there", "then", "than", "too", "very", "all", "any", "some",
}

INTERROGATIVE_LEADS = [
    "what", "why", "how", "when", "where", "who", "whom", "whose", "which",
    "is", "are", "was", "were", "do", "does", "did", "can", "could", "would",
    "will", "should", "have", "has", "may", "tell me",
]

INQUIRY_PHRASES = ["tell me", "do you remember", "explain", "what about", "i wonder"]

NOSTALGIC_LANGUAGE = [
    "remember", "back then", "in my day", "years ago", "used to", "old days",
    "those days", "long ago", "back in",
]

TECHNICAL_LANGUAGE = [
    "code", "program", "computer", "algorithm", "machine", "fortran", "debug",
    "compiler", "punch card", "logic board", "software", "valve",
]

PHILOSOPHICAL_LANGUAGE = [
    "meaning", "purpose", "soul", "truth", "wisdom", "universe", "existence",
    "what matters", "patterns",
]
