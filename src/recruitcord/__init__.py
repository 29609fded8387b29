"""Recruitcord: blacklist, recruit pipeline and recruiter ranking for Discord communities."""
