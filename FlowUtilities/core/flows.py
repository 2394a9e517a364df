"""Flow action cards and their dispatch to the engine.

Each card has an argument dataclass listing every argument with its default. The host
passes raw argument dicts; :func:`run_action` turns them into the dataclass and calls
the matching engine operation.
"""
import dataclasses
import functools
import logging
from typing import Any, Callable, Dict, List, Optional, Tuple, Type


def _field(default: Any, arg: Optional[str] = None) -> Any:
    """Declare an argument field, optionally under a different host argument name."""
    return dataclasses.field(default=default, metadata={'arg': arg} if arg else {})


def _token_name(value: Any) -> str:
    # Autocomplete arguments arrive as the selected item
    if isinstance(value, dict):
        value = value.get('name')
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f'Invalid token argument: {value!r}')
    return value.strip()


@dataclasses.dataclass
class ActionArgs:
    """Base for card arguments. Every card names the tracked variable in ``token``."""
    token: str = ''

    @classmethod
    def from_args(cls, args: Dict[str, Any]):
        """Build the dataclass from a host argument dict, ignoring unknown keys.

        Raises:
            ValueError: If the token argument is missing or empty.
        """
        kwargs = {}
        for f in dataclasses.fields(cls):
            key = f.metadata.get('arg', f.name)
            if key in args and args[key] is not None:
                kwargs[f.name] = args[key]
        kwargs['token'] = _token_name(kwargs.get('token'))
        return cls(**kwargs)


@dataclasses.dataclass
class StartArgs(ActionArgs):
    comparison: Optional[Any] = None
    track_duration: bool = _field(True, arg='dateStart')


@dataclasses.dataclass
class EndArgs(ActionArgs):
    value: Optional[Any] = None


@dataclasses.dataclass
class CancelArgs(ActionArgs):
    pass


@dataclasses.dataclass
class CurrencyArgs(ActionArgs):
    number: Any = 0
    currency: str = ''


@dataclasses.dataclass
class CalculationArgs(ActionArgs):
    calc_type: str = _field('add', arg='calcType')
    number1: Any = 0
    number2: Any = 0


def _start(app, args: StartArgs) -> Any:
    from .engine import StartOptions
    return app.engine.start(args.token, args.comparison, StartOptions(track_duration=bool(args.track_duration)))


def _end(app, args: EndArgs) -> Any:
    return app.engine.end(args.token, args.value)


def _cancel(app, args: CancelArgs) -> Any:
    return app.engine.cancel(args.token)


def _set_currency(app, args: CurrencyArgs) -> Any:
    return app.engine.set_currency(args.token, args.number, args.currency)


def _calculation(app, args: CalculationArgs) -> Any:
    return app.engine.calculation(args.token, args.calc_type, args.number1, args.number2)


ACTIONS: Dict[str, Tuple[Type[ActionArgs], Callable[[Any, Any], Any]]] = {
    'action_START': (StartArgs, _start),
    'action_END': (EndArgs, _end),
    'action_CANCEL': (CancelArgs, _cancel),
    'action_SET_CURRENCY': (CurrencyArgs, _set_currency),
    'action_CALCULATION': (CalculationArgs, _calculation),
}


def run_action(app, card_id: str, args: Dict[str, Any]) -> Any:
    """Parse a card's arguments and run it.

    Raises:
        KeyError: If card_id is not a known card.
        ValueError: If the arguments are malformed.
        status.BaseStatusException: Whatever the engine operation raises.
    """
    if card_id not in ACTIONS:
        raise KeyError(f'Unknown action card: {card_id}')

    args_cls, handler = ACTIONS[card_id]
    parsed = args_cls.from_args(args)
    logging.debug(f'[{card_id}] {parsed}')
    return handler(app, parsed)


def autocomplete_variables(app, query: str, args: Optional[Dict[str, Any]] = None) -> List[Dict[str, str]]:
    """Return the tracked names containing query, case-insensitively."""
    query = (query or '').strip().lower()
    return [
        {'name': name}
        for name in app.settings['VARIABLES']
        if query in name.lower()
    ]


def init(app) -> None:
    """Register every action card with the host."""
    for card_id in ACTIONS:
        app.host.register_action(
            card_id,
            functools.partial(run_action, app, card_id),
            autocomplete=functools.partial(autocomplete_variables, app),
        )
        logging.debug(f'Registered action card "{card_id}"')
