from collections.abc import Sequence

from rich import box
from rich.console import Console
from rich.table import Table
from rich.text import Text

from dug._models import Resolution, dumps


def _resolution_table(name: str, resolutions: Sequence[Resolution], *, plain: bool) -> Table:
    table = Table(
        title=name,
        box=box.ASCII if plain else box.SIMPLE_HEAD,
        show_header=True,
        title_style=None if plain else 'bold',
        header_style=None if plain else 'bold cyan',
    )
    table.add_column('Source', no_wrap=True)
    table.add_column('Result', overflow='fold')

    for res in resolutions:
        result = Text(str(res.result))
        if res.failed and not plain:
            result.stylize('red')
        table.add_row(res.source, result)
    return table


def render_table(results: Sequence[Sequence[Resolution]], console: Console) -> None:
    '''
    Print one table per hostname with the source and its result.
    Failures are shown in red.

    Parameters
    ----------
    results : Sequence[Sequence[Resolution]]
        One list of resolutions per hostname.
    console : Console
    '''
    for resolutions in results:
        if not resolutions:
            continue
        console.print(_resolution_table(resolutions[0].name, resolutions, plain=False))


def render_ascii(results: Sequence[Sequence[Resolution]], console: Console) -> None:
    for resolutions in results:
        if not resolutions:
            continue
        console.print(_resolution_table(resolutions[0].name, resolutions, plain=True))


def render_json(results: Sequence[Sequence[Resolution]]) -> str:
    '''
    Serialize every hostname's resolutions into one flat JSON array.

    Parameters
    ----------
    results : Sequence[Sequence[Resolution]]

    Returns
    -------
    str
    '''
    return dumps(res for resolutions in results for res in resolutions)
