"""Localized user-facing text for English, Hindi and Hinglish.

``get_message`` falls back to English when a key is missing for a language,
and to the key itself when English lacks it too.
"""

from typing import Union

from src.models.models import CuisineType, DietType, FlowChoice, Language, MealType

MESSAGES: dict[Language, dict[str, str]] = {
    Language.EN: {
        "welcome": "Hi! 👩‍🍳 Let's help you decide what to cook today.\nFirst, please select your preferred language:",
        "choice_selection": "How would you like to proceed?",
        "need_suggestions": "💡 I need suggestions",
        "know_recipe": "📝 I know what to cook",
        "meal_selection": "Which meal are you planning?",
        "diet_selection": "What's your meal type today?",
        "ingredient_selection": "Select what you have in the kitchen:",
        "selected": "Selected",
        "cuisine_selection": (
            "What cuisine matches your ingredients? 🤔\n"
            "(Pick something that makes sense with what you have - let's not confuse the chef! 👨‍🍳)"
        ),
        "direct_recipe_prompt": "Please tell me what you want to cook (e.g., paneer bhurji, rajma chawal, etc.):",
        "custom_ingredient_prompt": "Please type your custom ingredient and send it as a message:",
        "generating_recipes": "🍳 Generating delicious recipes for you...",
        "recipe_list_header": "Here are some delicious recipes for you:",
        "recipe_list_footer": "Tap a recipe number to see full details! 👆",
        "no_recipes": "Sorry, no recipes could be generated. Please try again.",
        "serves": "Serves",
        "cooking_time_label": "Cooking Time:",
        "ingredients_label": "🥘 Ingredients:",
        "steps_label": "👨‍🍳 Step-by-Step Instructions:",
        "macros_label": "📊 Nutrition (per serving):",
        "calories": "Calories",
        "protein": "Protein",
        "carbs": "Carbs",
        "fat": "Fat",
        "video_label": "📺 Watch how to cook:",
        "error_message": "Sorry, something went wrong. Please try again by sending /start",
        "use_buttons": "Please choose one of the options below.",
        "try_again": "Try Again",
        "back": "Back",
        "done": "Done",
        "cancel": "Cancel",
        "custom_ingredient": "Enter custom ingredient",
        "skip_ingredients": "Skip",
        "surprise_me": "Surprise Me",
    },
    Language.HI: {
        "welcome": "नमस्ते! 👩‍🍳 आज आप क्या बनाना चाहते हैं, मैं आपकी मदद करूंगी।\nपहले अपनी पसंदीदा भाषा चुनें:",
        "choice_selection": "आप कैसे आगे बढ़ना चाहेंगे?",
        "need_suggestions": "💡 मुझे सुझाव चाहिए",
        "know_recipe": "📝 मुझे पता है क्या बनाना है",
        "meal_selection": "आप कौन सा खाना बनाने की योजना बना रहे हैं?",
        "diet_selection": "आज आपका खाना कैसा होगा?",
        "ingredient_selection": "रसोई में आपके पास क्या है उसे चुनें:",
        "selected": "चुना गया",
        "cuisine_selection": (
            "कौन सा cuisine आपके ingredients के साथ match करेगा? 🤔\n"
            "(कुछ ऐसा चुनें जो आपके पास की चीज़ों से बन सके - chef को confuse न करें! 👨‍🍳)"
        ),
        "direct_recipe_prompt": "कृपया बताएं कि आप क्या बनाना चाहते हैं (जैसे: पनीर भुर्जी, राजमा चावल, आदि):",
        "custom_ingredient_prompt": "कृपया अपनी सामग्री लिखकर भेजें:",
        "generating_recipes": "🍳 आपके लिए स्वादिष्ट रेसिपी तैयार की जा रही है...",
        "recipe_list_header": "यहाँ आपके लिए कुछ रेसिपी सुझाव हैं:",
        "recipe_list_footer": "पूरी जानकारी के लिए रेसिपी नंबर दबाएं! 👆",
        "no_recipes": "क्षमा करें, कोई रेसिपी नहीं बन सकी। कृपया फिर से कोशिश करें।",
        "serves": "सर्विंग्स",
        "cooking_time_label": "पकाने का समय:",
        "ingredients_label": "🥘 सामग्री:",
        "steps_label": "👨‍🍳 बनाने की विधि:",
        "macros_label": "📊 पोषण (प्रति सर्विंग):",
        "calories": "कैलोरी",
        "protein": "प्रोटीन",
        "carbs": "कार्ब्स",
        "fat": "वसा",
        "video_label": "📺 बनाने का तरीका देखें:",
        "error_message": "क्षमा करें, कुछ गलत हुआ। कृपया /start भेजकर फिर से कोशिश करें",
        "use_buttons": "कृपया नीचे दिए गए विकल्पों में से चुनें।",
        "try_again": "फिर कोशिश करें",
        "back": "वापस",
        "done": "हो गया",
        "cancel": "रद्द करें",
        "custom_ingredient": "अपनी सामग्री लिखें",
        "skip_ingredients": "छोड़ें",
        "surprise_me": "मुझे सरप्राइज़ करें",
    },
    Language.HINGLISH: {
        "welcome": "Hi! 👩‍🍳 Aaj aap kya banana chahte hain, main aapki help karungi.\nPehle apni favorite language choose kariye:",
        "choice_selection": "Aap kaise aage badhna chahenge?",
        "need_suggestions": "💡 Mujhe suggestions chahiye",
        "know_recipe": "📝 Mujhe pata hai kya banana hai",
        "meal_selection": "Aap konsa meal plan kar rahe hain?",
        "diet_selection": "Aaj aapka khana kaisa hoga?",
        "ingredient_selection": "Kitchen mein aapke paas kya hai select kariye:",
        "selected": "Selected",
        "cuisine_selection": (
            "Konsa cuisine aapke ingredients ke saath match karega? 🤔\n"
            "(Kuch aisa choose kariye jo aapke paas ki cheezon se ban sake - chef ko confuse na kariye! 👨‍🍳)"
        ),
        "direct_recipe_prompt": "Please batayein ki aap kya banana chahte hain (jaise: paneer bhurji, rajma chawal, etc.):",
        "custom_ingredient_prompt": "Apna ingredient type karke message bhejiye:",
        "generating_recipes": "🍳 Aapke liye tasty recipes ready ki ja rahi hain...",
        "recipe_list_header": "Yahan aapke liye kuch recipe suggestions hain:",
        "recipe_list_footer": "Puri details ke liye recipe number dabaiye! 👆",
        "no_recipes": "Sorry, koi recipe nahi ban payi. Please phir try kariye.",
        "serves": "Serves",
        "cooking_time_label": "Cooking Time:",
        "ingredients_label": "🥘 Ingredients:",
        "steps_label": "👨‍🍳 Banane ka tarika:",
        "macros_label": "📊 Nutrition (per serving):",
        "video_label": "📺 Banane ka video dekhiye:",
        "error_message": "Sorry, kuch galat hua. Please /start bhejkar phir try kariye",
        "use_buttons": "Please neeche diye gaye options mein se choose kariye.",
        "try_again": "Phir Try Kariye",
        "back": "Wapas",
        "done": "Ho Gaya",
        "cancel": "Cancel",
        "custom_ingredient": "Apna ingredient likhiye",
        "skip_ingredients": "Skip Kariye",
        "surprise_me": "Mujhe Surprise Kariye",
    },
}

LANGUAGE_LABELS: dict[Language, str] = {
    Language.EN: "🇺🇸 English",
    Language.HI: "🇮🇳 हिंदी",
    Language.HINGLISH: "🇮🇳 Hinglish",
}

MEAL_LABELS: dict[MealType, str] = {
    MealType.BREAKFAST: "🌅 Breakfast",
    MealType.LUNCH: "🍽 Lunch",
    MealType.SNACKS: "🍿 Snacks",
    MealType.DINNER: "🌙 Dinner",
}

DIET_LABELS: dict[DietType, str] = {
    DietType.VEGETARIAN: "🥬 Vegetarian",
    DietType.EGGITARIAN: "🥚 Eggitarian",
    DietType.NON_VEGETARIAN: "🍗 Non Vegetarian",
}

CUISINE_LABELS: dict[CuisineType, str] = {
    CuisineType.NORTH_INDIAN: "🇮🇳 North Indian",
    CuisineType.SOUTH_INDIAN: "🌶️ South Indian",
    CuisineType.THAI: "🇹🇭 Thai",
    CuisineType.MEXICAN: "🇲🇽 Mexican",
    CuisineType.ITALIAN: "🇮🇹 Italian",
    CuisineType.CONTINENTAL: "🍽️ Continental",
    CuisineType.MEDITERRANEAN: "🫒 Mediterranean",
    CuisineType.CHINESE: "🇨🇳 Chinese",
    CuisineType.SURPRISE_ME: "🎲 Surprise Me",
}

CHOICE_MESSAGE_KEYS: dict[FlowChoice, str] = {
    FlowChoice.SUGGESTION: "need_suggestions",
    FlowChoice.DIRECT: "know_recipe",
}


def get_message(key: str, language: Union[Language, str, None] = Language.EN) -> str:
    """Look up a localized message.

    Args:
        key: Message key.
        language: Language code or enum; unknown values use English.

    Returns:
        Localized text, the English text, or ``key`` itself.
    """
    try:
        lang = Language(language)
    except ValueError:
        lang = Language.EN
    return MESSAGES[lang].get(key) or MESSAGES[Language.EN].get(key) or key
