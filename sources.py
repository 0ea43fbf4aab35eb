from datetime import date, datetime
from pathlib import Path

import pandas as pd
import structlog

from stamps import Stamp, StampType

logger = structlog.get_logger(__name__)

# Header aliases, compared after dropping non-alphanumerics and upper-casing
ID_ALIASES: list[str] = ['PERSONNELID', 'PERSONNELNO', 'EMPLOYEEID', 'EMPLOYEENO', 'EMPLOYEENUMBER',
                         'EMPLOYERID', 'ID', 'STAFFID', 'WORKERID', 'USERID', 'BADGEID', 'BADGENO']
DATE_ALIASES: list[str] = ['LOGDATE', 'DATE', 'DAY', 'WORKDATE', 'PUNCHDATE', 'ENTRYDATE']
TIME_ALIASES: list[str] = ['LOGTIME', 'TIME', 'HOUR', 'PUNCHTIME', 'ENTRYTIME', 'CLOCKTIME']
TYPE_ALIASES: list[str] = ['INOUT', 'LOGTYPE', 'TYPE', 'STAMPTYPE', 'DIRECTION', 'EVENT', 'EVENTTYPE',
                           'PUNCH', 'PUNCHTYPE']

REQUIRED_COLUMNS: list[str] = ['ID', 'TYPE', 'DATETIME']


class FrameStampsSource:
    """
    Stamps source over a table of punches.

    The table needs the columns 'ID', 'TYPE' (StampType values) and 'DATETIME'.
    Rows do not have to be ordered; stamps are handed out ordered by time.
    """

    def __init__(self, df: pd.DataFrame):
        missing: list[str] = [col for col in REQUIRED_COLUMNS if col not in df.columns]
        if missing:
            raise ValueError(f'Stamps table is missing columns {missing}.')

        self.df: pd.DataFrame = df[REQUIRED_COLUMNS].sort_values(by=['ID', 'DATETIME'], kind='stable')
        self.df = self.df.reset_index(drop=True)

    @classmethod
    def from_file(cls, file_path: str | Path) -> 'FrameStampsSource':
        """Builds a source from a CSV or XLSX punch log, see `read_input_file`."""
        df, logs = read_input_file(file_path)
        for log_message in logs:
            logger.info('punch_log_read', path=str(file_path), details=log_message)
        return cls(df)

    def get_by_employee_id_for_day(self, employee_id: int, day: date) -> list[Stamp]:
        if isinstance(day, datetime):
            day = day.date()

        mask: pd.Series = (self.df['ID'] == employee_id) & (self.df['DATETIME'].dt.date == day)
        filtered: pd.DataFrame = self.df[mask]
        return [Stamp(employee_id, StampType(row.TYPE), row.DATETIME.to_pydatetime())
                for row in filtered.itertuples(index=False)]


def read_input_file(file_path: str | Path) -> tuple[pd.DataFrame, list[str]]:
    """
    Reads a CSV or XLSX punch log into a single table of stamps.

    -   For XLSX files, it reads all sheets and combines those that have the
        required headers. Other sheets are skipped and this is logged.
    -   For CSV files, it reads the file and checks for required headers.

    Args:
        file_path: The path to the input file (.csv or .xlsx).

    Returns:
        A tuple containing:
        - A DataFrame with 'ID', 'TYPE' and 'DATETIME' columns.
        - A list of log messages generated during reading.

    Raises:
        ValueError: If the file format is unsupported or no sheet/file with
                    valid headers and data is found.
    """
    path: Path = Path(file_path)
    file_suffix: str = path.suffix.lower()
    logs: list[str] = []

    if file_suffix == '.csv':
        df_raw: pd.DataFrame = pd.read_csv(path, dtype=str)
        try:
            df: pd.DataFrame = preprocess_sheet(df_raw)
        except ValueError as e:
            raise ValueError(f'The CSV file {path.name} could not be processed. Details: {e}') from e
        if df.empty:
            raise ValueError(f'The CSV file {path.name} has no valid data.')
        logs.append(f'Successfully processed CSV file: {path.name}')
        return df, logs

    if file_suffix == '.xlsx':
        sheets: dict[str, pd.DataFrame] = pd.read_excel(path, sheet_name=None, engine='openpyxl', dtype=str)

        processed: list[pd.DataFrame] = []
        for sheet_name, sheet_df_raw in sheets.items():
            if sheet_df_raw.empty:
                logs.append(f'Skipping empty sheet: {sheet_name}.')
                continue
            try:
                sheet_df: pd.DataFrame = preprocess_sheet(sheet_df_raw)
            except ValueError:
                logs.append(f'Skipping sheet {sheet_name} due to missing required headers.')
                continue
            processed.append(sheet_df)
            logs.append(f'Successfully processed sheet: {sheet_name}.')

        if not processed:
            raise ValueError(f'No sheets with valid headers and data found in Excel file {path.name}.')
        return pd.concat(processed, ignore_index=True), logs

    raise ValueError(f'Unsupported file format: {file_suffix}. Please use a .csv or .xlsx file.')

def preprocess_sheet(df_raw: pd.DataFrame) -> pd.DataFrame:
    """
    Turns one raw sheet into a table of stamps.

    Raises:
        ValueError: If headers are missing.
        TypeError: If a date/time or a punch type could not be parsed.
    """
    df: pd.DataFrame = process_headers(df_raw.copy())
    if df.empty:
        return pd.DataFrame(columns=REQUIRED_COLUMNS)

    datetime_str_series: pd.Series = df['DATE'].astype(str).str.strip() + ' ' + df['TIME'].astype(str).str.strip()
    df['DATETIME'] = parse_dates(datetime_str_series, DATETIME_FORMATS)
    if df['DATETIME'].isnull().any():
        raise TypeError('Found row(s) with unparseable date/time values.')

    df['ID'] = pd.to_numeric(df['ID'].astype(str).str.strip(), errors='raise').astype(int)
    df = standardize_logtype(df)
    return df[REQUIRED_COLUMNS]

def process_headers(df: pd.DataFrame) -> pd.DataFrame:
    """
    Standardizes column headers and selects the columns a stamp is made of.

    Headers are upper-cased and stripped of non-alphanumerics, then matched
    against common aliases and renamed to 'ID', 'DATE', 'TIME' and 'TYPE'.

    Args:
        df: The raw punch log.

    Returns:
        A DataFrame with only the standardized columns.

    Raises:
        ValueError: If one of the columns can not be found.
    """
    def standardize_col(col) -> str:
        return ''.join(char.upper() for char in str(col) if char.isalnum())
    df.columns = [standardize_col(col) for col in df.columns]

    renames: dict[str, str] = {}
    for target, aliases in (('ID', ID_ALIASES), ('DATE', DATE_ALIASES),
                            ('TIME', TIME_ALIASES), ('TYPE', TYPE_ALIASES)):
        found: str | None = next((col for col in aliases if col in df.columns), None)
        if found is None:
            raise ValueError(f'{target} column not found in df with columns {list(df.columns)}.')
        renames[found] = target

    df = df.rename(columns=renames)
    return df[['ID', 'DATE', 'TIME', 'TYPE']]

def standardize_logtype(df: pd.DataFrame) -> pd.DataFrame:
    """
    Standardizes the 'TYPE' column to StampType values.

    Common representations are understood: 'In'/'Out', 'C/In', 'check-out',
    '0' for in and '1' for out, and booleans or their text (True is out).

    Raises:
        TypeError: If an unparseable value is found in the 'TYPE' column.
    """
    def parse_logtype(x: str | bool) -> str:
        if isinstance(x, bool):
            return StampType.OUT.value if x else StampType.IN.value

        value: str = str(x).strip().lower()
        if 'out' in value or value in ('1', 'true'):
            return StampType.OUT.value
        if 'in' in value or value in ('0', 'false'):
            return StampType.IN.value
        raise TypeError(f'Invalid LOGTYPE. Parsing {x} but failed.')

    df['TYPE'] = df['TYPE'].apply(parse_logtype)
    return df

def parse_dates(series: pd.Series, formats: list[str], day_first: bool = True) -> pd.Series:
    """
    Parses date strings, first with explicit formats and then flexibly.

    1.  Fast Path: every format in `formats` is tried on the whole series and
        the first one that parses all of it wins.
    2.  Fallback Path: pandas infers the format per row. Rows it can not read
        become NaT.

    Args:
        series: The pandas Series of date strings.
        formats: Format strings to attempt for the fast path.
        day_first: Hint for ambiguous dates in the fallback (e.g., '01/02/2023').

    Returns:
        A pandas Series of datetimes.
    """
    for fmt in formats:
        try:
            return pd.to_datetime(series, format=fmt, errors='raise')
        except (ValueError, TypeError):
            continue

    return pd.to_datetime(series, dayfirst=day_first, errors='coerce', format='mixed')

def generate_datetime_formats() -> list[str]:
    """
    Generates the explicit formats of the fast path, in this order:
    1. ISO style (YYYY-MM-DD)
    2. European style (DD-MM-YYYY)
    3. US style (MM-DD-YYYY)
    Each with '-' and '/' separators and 24-hour or 12-hour time, with and
    without seconds.
    """
    time_formats: list[str] = ['%H:%M:%S', '%H:%M', '%I:%M:%S %p', '%I:%M %p']

    formats: list[str] = []
    for date_base in ('%Y{sep}%m{sep}%d', '%d{sep}%m{sep}%Y', '%m{sep}%d{sep}%Y'):
        for sep in ('-', '/'):
            for time_format in time_formats:
                formats.append(f'{date_base.format(sep=sep)} {time_format}')
    return formats

DATETIME_FORMATS: list[str] = generate_datetime_formats()
