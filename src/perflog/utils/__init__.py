"""perflog utilities."""

from perflog.utils.format import format_number, round_to_sig_figs

__all__ = ["format_number", "round_to_sig_figs"]
