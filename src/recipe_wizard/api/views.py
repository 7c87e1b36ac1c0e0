"""JSON views of application state returned to the front-end."""

from recipe_wizard.domain.community import CommunityCache
from recipe_wizard.domain.recipes import Comment, RecipeResult, to_full_json
from recipe_wizard.domain.users import UserIdentity
from recipe_wizard.services.states import AppState


def recipe_view(recipe: RecipeResult) -> dict[str, object]:
    """Serialize a recipe with its community counters."""
    metrics = recipe.metrics
    return {
        "id": recipe.id,
        "createdAt": recipe.created_at.isoformat() if recipe.created_at else None,
        **to_full_json(recipe),
        "metrics": {
            "ratingSum": metrics.rating_sum,
            "ratingCount": metrics.rating_count,
            "averageRating": metrics.average_rating,
            "voteSuccess": metrics.vote_success,
            "voteFail": metrics.vote_fail,
            "downloadCount": metrics.download_count,
            "commentCount": metrics.comment_count,
        },
    }


def comment_view(comment: Comment) -> dict[str, object]:
    return {
        "id": comment.id,
        "recipeId": comment.recipe_id,
        "author": UserIdentity(comment.user_id, comment.user_email).display_name,
        "content": comment.content,
        "createdAt": comment.created_at.isoformat() if comment.created_at else None,
    }


def community_view(cache: CommunityCache) -> dict[str, object]:
    return {
        "recipes": [recipe_view(recipe) for recipe in cache.recipes],
        "search": cache.search,
        "sort": cache.sort,
        "page": cache.page,
        "hasMore": cache.has_more,
        "scrollOffset": cache.scroll_offset,
        "isFetching": cache.is_fetching,
        "error": cache.error,
    }


def state_view(state: AppState) -> dict[str, object]:
    """Serialize everything the front-end renders for one client."""
    choices = state.choices
    history = state.history
    current = history.current
    return {
        "step": int(state.step),
        "stepName": state.step.name,
        "tab": state.tab,
        "url": state.url,
        "error": state.error,
        "isFetchingItems": state.is_fetching_items,
        "choices": {
            "mode": choices.mode,
            "ingredients": choices.ingredients,
            "sauces": list(choices.sauces),
            "cuisine": choices.cuisine,
            "partner": choices.partner,
            "theme": choices.theme,
            "tools": list(choices.tools),
            "level": choices.level,
        },
        "convenienceCategory": state.convenience_category,
        "suggestions": state.suggestions.model_dump(by_alias=True),
        "topicItems": [item.model_dump() for item in state.topic_items],
        "history": {
            "size": len(history.entries),
            "index": history.index,
            "canGoBack": history.can_go_back,
            "canGoForward": history.can_go_forward,
            "current": recipe_view(current) if current else None,
        },
        "user": user_view(state.user) if state.user else None,
    }


def user_view(user: UserIdentity) -> dict[str, object]:
    return {"id": user.id, "email": user.email, "displayName": user.display_name}
