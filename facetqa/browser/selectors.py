from pydantic import BaseModel, ConfigDict


class PageSelectors(BaseModel):
    """CSS selectors the engine relies on.

    Defaults target the Douglas perfume listing. A rename on the site is a
    breaking change to this contract; override single entries through the
    ``selectors`` section of the YAML config.
    """

    model_config = ConfigDict(frozen=True)

    # landing page
    consent_overlay: str = ".modal-overlay__display"
    consent_accept: str = ".button.button__primary.uc-list-button__accept-all"
    listing_nav_entry: str = ".navigation-main-entry a[href='/de/c/parfum/01']"
    page_header: str = ".header-component__container"

    # facet dropdowns
    facet_group: str = ".facet"
    facet_title: str = ".facet__title"
    facet_option: str = "a[class*='facet-option']"
    facet_option_label: str = ".facet-option__checkbox--rating-stars"
    facet_option_checkbox: str = ".facet-option__checkbox"
    facet_search_input: str = "input[name='facet-search']"
    facet_close: str = ".facet__close-button"
    facet_close_label: str = "SCHLIESSEN"
    selected_facets: str = ".selected-facets a"

    # result tiles
    product_tile: str = ".product-tile"
    tile_name: str = ".name"
    tile_brand: str = ".top-brand"
    tile_category: str = ".category"
    tile_badge: str = ".eyecatcher span"
    tile_sale_marker: str = ".eyecatcher--discount"
    tile_new_marker: str = ".eyecatcher--new"
    tile_out_of_stock: str = ".out-of-stock"
    tile_link: str = ".link"

    # detail document
    detail_classification: str = ".classification"
    detail_badge: str = ".eyecatcher span"
    detail_stock_label: str = ".out-of-stock .label-text"
    gift_occasion_label: str = "Geschenk Für"
