"""
Default Settings Configuration

Literal defaults of the restaurant settings record. ``reset`` restores every
field to exactly these values; edit this mapping to customize them.
"""

DEFAULT_SETTINGS = {
    # General
    "primary_color": "#4CAF50",
    "timezone": "UTC",
    "favicon": None,
    "default_language": "en",

    # Restaurant
    "restaurant_logo": None,
    "restaurant_name": None,
    "restaurant_description": None,
    "restaurant_address": None,
    "restaurant_phone": None,
    "restaurant_email": None,
    "restaurant_hours": None,
    "restaurant_background_image": None,
    "restaurant_map_lat": None,
    "restaurant_map_lng": None,
    "restaurant_instagram": None,
    "restaurant_whatsapp": None,
    "restaurant_telegram": None,
    "restaurant_google_maps_url": None,

    # Login Page
    "login_background_image": None,
    "show_login_title": True,
    "login_title": "",
    "show_login_reset_password": True,

    # QR Page Content
    "qr_media_url": None,
    "qr_media_type": None,
    "qr_show_logo": True,
    "qr_show_title": True,
    "qr_show_description": True,
    "qr_show_animated_text": True,
    "qr_animated_texts": ["Welcome", "Hoş geldiniz", "خوش آمدید", "أهلاً وسهلاً"],
    "qr_show_call_waiter": True,
    "qr_show_address_phone": True,
    "qr_page_title": "Welcome",
    "qr_page_description": "Please select your language to continue view the menu",
    "qr_text_color": "#000000",

    # QR Design
    "qr_eye_border_color": "#000000",
    "qr_eye_dot_color": "#000000",
    "qr_eye_border_shape": "square",
    "qr_eye_dot_shape": "square",
    "qr_dots_style": "square",
    "qr_foreground_color": "#000000",
    "qr_background_color": "#FFFFFF",
    "qr_center_type": "logo",
    "qr_center_text": None,
    "qr_logo": None,

    # Menu Page
    "menu_default_theme": "light",
    "menu_background_type": "default",
    "menu_background_color": None,
    "menu_gradient_start": None,
    "menu_gradient_end": None,
    "menu_background_image": None,
    "show_menu_instagram": True,
    "show_menu_whatsapp": True,
    "show_menu_telegram": True,
    "show_menu_language_selector": True,
    "show_menu_theme_switcher": True,
    "menu_show_restaurant_logo": True,
    "menu_show_restaurant_name": True,
    "menu_show_restaurant_description": True,
    "menu_show_operation_hours": True,
    "menu_show_menu": True,
    "menu_show_all_menu_items": True,
    "menu_show_recommended_menu_items": True,
    "menu_show_food_type": True,
    "menu_show_search_bar": True,
    "menu_show_view_switcher": True,
    "menu_show_prices": True,
    "menu_show_images": True,
    "menu_show_ingredients": True,
    "menu_show_food_types": True,
    "menu_show_buy_button": True,
    "menu_show_more_information_popup": True,

    # Kitchen Display
    "kd_show_table_number": True,
    "kd_show_order_time": True,
    "kd_show_clock": True,
    "kd_show_notes": True,
    "kd_has_pending_status": True,
    "kd_show_recently_completed": True,
    "kd_pending_color": "#FF9800",
    "kd_preparing_color": "#2196F3",
    "kd_ready_color": "#4CAF50",

    # Order Status Screen
    "oss_pending_color": "#fef3c7",
    "oss_preparing_color": "#fed7aa",
    "oss_ready_color": "#dcfce7",
    "oss_background_type": "solid",
    "oss_background_color": "#ffffff",
    "oss_background_image": None,
    "oss_card_text_color": "#000000",
    "oss_card_border_color": "#666666",
    "oss_card_box_style": "rounded",
    "oss_header_text": "Order Status",
    "oss_number_label": "Number",
    "oss_table_label": "Table",
    "oss_show_table_information": True,
    "oss_show_status_icon": True,
    "oss_limit_to_3_orders": False,

    # Payment
    "payment_method": None,

    # Currency
    "currency_name": "US Dollar",
    "currency_symbol": "$",
    "currency_position": "before",

    # License
    "license_key": None,
    "license_expiry_date": None,
    "license_owner": None,
}


# Data created on first start of an empty store.
SEED_BRANCHES = [
    {
        "id": "1",
        "name": "Downtown Branch",
        "address": "123 Main Street",
        "phone": "+1 (555) 123-4567",
        "is_active": True,
    },
    {
        "id": "2",
        "name": "Uptown Branch",
        "address": "456 Oak Avenue",
        "phone": "+1 (555) 234-5678",
        "is_active": True,
    },
]

# Username and password come from ``Settings.admin_username`` / ``admin_password``.
SEED_ADMIN_PROFILE = {
    "name": "John Admin",
    "email": "admin@restaurant.com",
    "role": "admin",
    "language": "en",
}
