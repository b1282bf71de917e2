optimize_system_prompt_lines = [
    "You expand short image ideas into a single, clean, ready-to-use image prompt.",
    "Include subject, action, environment, mood, style, lighting, composition, lens when relevant.",
    "Keep it concise, no bullet points, no quotes, no extra commentary.",
    "Avoid vague fluff; be specific but not long.",
    "No unsafe content, no watermarks, no copyrighted character names.",
]

OPTIMIZE_SYSTEM_PROMPT = " ".join(optimize_system_prompt_lines)


STYLE_PRESETS = [
    {"label": "Photorealistic", "value": "photorealistic, ultra-detailed, 35mm film"},
    {"label": "Cinematic", "value": "cinematic lighting, shallow depth of field, anamorphic bokeh"},
    {"label": "Studio Portrait", "value": "studio lighting, softbox, high dynamic range, 85mm lens"},
    {"label": "Watercolor", "value": "delicate watercolor, soft washes, paper texture"},
    {"label": "Oil Painting", "value": "impasto oil painting, rich brushwork, baroque lighting"},
    {"label": "Anime", "value": "anime style, crisp lineart, vibrant palette"},
    {"label": "Isometric", "value": "isometric view, clean vector shapes"},
]

ARTISTS = [
    "Annie Leibovitz",
    "Greg Rutkowski",
    "Claude Monet",
    "Studio Ghibli",
    "Beeple",
    "H.R. Giger",
]

CAMERA_LENSES = ["24mm", "35mm", "50mm", "85mm", "135mm", "macro", "tilt-shift"]
LIGHTING = ["golden hour", "softbox", "rim light", "volumetric", "neon", "overcast", "moonlit"]
COMPOSITIONS = ["rule of thirds", "centered", "leading lines", "top-down", "close-up", "wide shot"]
MATERIALS = ["glass", "chrome", "wood", "marble", "fabric", "smoke", "water"]
MOODS = ["serene", "dramatic", "mysterious", "playful", "melancholic", "epic"]
ASPECT_RATIOS = ["1:1", "3:2", "4:5", "16:9", "21:9", "9:16"]
QUALITY_TIERS = ["draft", "standard", "high"]

DEFAULT_NEGATIVE = "blurry, low-resolution, watermark, extra fingers, deformed hands"
DEFAULT_ASPECT_RATIO = "16:9"
DEFAULT_QUALITY = "high"


QUICK_STARTERS = [
    {
        "title": "Logo-in-a-circle (great for avatars)",
        "fill": {
            "subject": "a clean, minimal line-art tooth logo inside a circle, centered",
            "action": "",
            "environment": "plain background, high contrast",
            "details": "vector style, crisp edges, smooth curves",
            "mood": "serene",
            "style_preset": STYLE_PRESETS[6]["value"],
            "lens": "",
            "lighting": "overcast",
            "composition": "centered",
        },
    },
    {
        "title": "Cinematic character portrait",
        "fill": {
            "subject": "young woman astronaut in slightly worn suit",
            "action": "gazing toward distant nebula",
            "environment": "inside a dim spacecraft window with stars",
            "details": "subtle film grain, pores, freckles, realistic skin",
            "mood": "dramatic",
            "style_preset": STYLE_PRESETS[1]["value"],
            "lens": "85mm",
            "lighting": "rim light",
            "composition": "rule of thirds",
        },
    },
    {
        "title": "Scientific product render",
        "fill": {
            "subject": "transparent dental aligner on a reflective surface",
            "action": "",
            "environment": "studio cyclorama",
            "details": "caustics, subsurface scattering, specular highlights",
            "mood": "serene",
            "style_preset": STYLE_PRESETS[0]["value"],
            "lens": "50mm",
            "lighting": "softbox",
            "composition": "close-up",
        },
    },
]


MODEL_USAGE_TIPS = [
    (
        "Stable Diffusion (WebUIs)",
        "Paste the generated prompt into \"Prompt\" and the negative prompt into its field. "
        "Map --ar to width/height, --seed to Seed.",
    ),
    ("Midjourney-style", "Use the suffix flags as-is if your runner supports them, or remove if not."),
    ("DALL·E / Firefly", "Use the generated prompt only; ignore negative/flags."),
]


REVIEWS = [
    {
        "name": "Sofia R.",
        "role": "Creative Director",
        "quote": "This finally fixed our prompt chaos. The output is consistent and our artists love it.",
        "stars": 5,
    },
    {
        "name": "Daniel K.",
        "role": "Solo Maker",
        "quote": "I went from random results to reliable looks in a day. The presets are spot on.",
        "stars": 5,
    },
    {
        "name": "Priya M.",
        "role": "Marketing Lead",
        "quote": "Our team ships assets faster and with fewer revisions. Huge time saver.",
        "stars": 5,
    },
]

PLANS = [
    {
        "name": "Free",
        "price": "$0",
        "tagline": "Great for getting started",
        "features": [
            "Prompt builder (image mode)",
            "Copy to clipboard",
            "3 quick-starter templates",
            "Email support (community)",
        ],
        "cta": {"label": "Start Free", "href": "/"},
    },
    {
        "name": "Pro",
        "price": "$9/mo",
        "tagline": "For creators who want more",
        "features": [
            "Advanced presets & saved templates",
            "One-click optimize button",
            "Pricing & Reviews sections built-in",
            "Early access to video mode",
        ],
        "cta": {"label": "Go Pro", "href": "/pricing"},
    },
]
