from __future__ import annotations

from providers.registry import build_catalog


# Bulgaria first, then world news, then regions.
TV_CATALOG = build_catalog(
    [
        (
            "Bulgaria",
            [
                {"name": "The Voice TV", "url": "https://bss1.neterra.tv/thevoice/thevoice.m3u8", "group": "Music", "logo": "https://i.imgur.com/OoJSmoj.png"},
                {"name": "Magic TV", "url": "https://bss1.neterra.tv/magictv/magictv.m3u8", "group": "Music", "logo": "https://i.imgur.com/n7bcrrp.png"},
                {"name": "Tiankov Folk", "url": "https://streamer103.neterra.tv/tiankov-folk/live.m3u8", "group": "Music", "logo": "https://i.imgur.com/VKY4q64.png"},
                {"name": "This is Bulgaria HD", "url": "https://streamer103.neterra.tv/thisisbulgaria/live.m3u8", "group": "Entertainment", "logo": "https://i.imgur.com/062jkXw.png"},
                {"name": "Travel TV", "url": "https://streamer103.neterra.tv/travel/live.m3u8", "group": "Travel", "logo": "https://i.imgur.com/5xllfed.png"},
                {"name": "Evrokom", "url": "https://live.ecomservice.bg/hls/stream.m3u8", "group": "Entertainment", "logo": "https://i.imgur.com/8JvT9Yw.png"},
                {"name": "Bulgaria ON AIR", "url": "https://edge1.cdn.bg:2006/fls/bonair.stream/playlist.m3u8", "group": "News", "logo": "https://i.imgur.com/YFZYJFN.png"},
                {"name": "Agro TV", "url": "https://restr2.bgtv.bg/agro/hls/agro.m3u8", "group": "Specialty", "logo": "https://i.imgur.com/HVKjGjz.png"},
                {"name": "BNT 4 (World)", "url": "https://viamotionhsi.netplus.ch/live/eds/bntworld/browser-HLS8/bntworld.m3u8", "group": "International", "logo": "https://i.imgur.com/LkXLDfm.png"},
            ],
        ),
        (
            "Kids",
            [
                {"name": "PBS Kids", "url": "https://livestream.pbskids.org/out/v1/14507d931bbe48a69287e4850e53443c/est.m3u8", "group": "USA", "logo": "https://i.imgur.com/mWLt6wY.png"},
                {"name": "KiKA", "url": "https://viamotionhsi.netplus.ch/live/eds/kikahd/browser-HLS8/kikahd.m3u8", "group": "Germany", "logo": "https://i.imgur.com/zVJQNfX.png"},
                {"name": "Rai Gulp", "url": "https://viamotionhsi.netplus.ch/live/eds/raigulp/browser-HLS8/raigulp.m3u8", "group": "Italy", "logo": "https://i.imgur.com/TkKXzMa.png"},
            ],
        ),
        (
            "World News",
            [
                {"name": "Al Jazeera English", "url": "https://live-hls-web-aje.getaj.net/AJE/index.m3u8", "group": "News", "logo": "https://i.imgur.com/GJmLFzF.png"},
                {"name": "France 24 English", "url": "https://live.france24.com/hls/live/2037218/F24_EN_HI_HLS/master_5000.m3u8", "group": "News", "logo": "https://i.imgur.com/nTp4h4h.png"},
                {"name": "DW English", "url": "https://dwamdstream102.akamaized.net/hls/live/2015525/dwstream102/master.m3u8", "group": "News", "logo": "https://i.imgur.com/A1xzjOI.png"},
                {"name": "Euronews English", "url": "https://viamotionhsi.netplus.ch/live/eds/euronews/browser-HLS8/euronews.m3u8", "group": "News", "logo": "https://i.imgur.com/7MBmUgR.png"},
            ],
        ),
        (
            "Germany",
            [
                {"name": "Das Erste", "url": "https://daserste-live.ard-mcdn.de/daserste/live/hls/int/master.m3u8", "group": "Public", "logo": "https://i.imgur.com/rJgRxnA.png"},
                {"name": "ZDF", "url": "https://viamotionhsi.netplus.ch/live/eds/zdfhd/browser-HLS8/zdfhd.m3u8", "group": "Public", "logo": "https://i.imgur.com/9sVBnvH.png"},
                {"name": "Tagesschau 24", "url": "https://tagesschau.akamaized.net/hls/live/2020115/tagesschau/tagesschau_1/master.m3u8", "group": "News", "logo": "https://i.imgur.com/5CMVoTy.png"},
            ],
        ),
        (
            "France",
            [
                {"name": "France 2", "url": "https://viamotionhsi.netplus.ch/live/eds/france2hd/browser-HLS8/france2hd.m3u8", "group": "Public", "logo": "https://i.imgur.com/pbmqYmV.png"},
                {"name": "Arte", "url": "https://viamotionhsi.netplus.ch/live/eds/artehd/browser-HLS8/artehd.m3u8", "group": "Culture", "logo": "https://i.imgur.com/9KI9VvS.png"},
                {"name": "Franceinfo", "url": "https://viamotionhsi.netplus.ch/live/eds/franceinfo/browser-HLS8/franceinfo.m3u8", "group": "News", "logo": "https://i.imgur.com/cC5IK6q.png"},
            ],
        ),
        (
            "Greece",
            [
                {"name": "ERT 1", "url": "https://ert-live-bcbs15228.siliconweb.com/media/ert1/ert1.m3u8", "group": "Public", "logo": "https://i.imgur.com/Z8rZZVn.png"},
                {"name": "ERT World", "url": "https://ert-live-bcbs15228.siliconweb.com/media/ertworld/ertworld.m3u8", "group": "International", "logo": "https://i.imgur.com/Z8rZZVn.png"},
            ],
        ),
    ]
)
